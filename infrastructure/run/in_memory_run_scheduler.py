from __future__ import annotations

from concurrent.futures import Future, ThreadPoolExecutor, TimeoutError as FutureTimeoutError
from threading import Lock
from typing import Any, Callable, Dict, Optional

from application.ports.run_scheduler import RunSchedulerPort


class InMemoryRunScheduler(RunSchedulerPort):
    def __init__(self, max_workers: int = 4) -> None:
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="execution")
        self._lock = Lock()
        self._futures: Dict[str, Future] = {}

    def submit(self, execution_id: str, task: Callable[[], Any]) -> Future:
        with self._lock:
            future = self._executor.submit(task)
            self._futures[execution_id] = future
            return future

    def wait(self, execution_id: str, timeout_sec: float) -> bool:
        future = self.get_future(execution_id)
        if future is None:
            return False
        try:
            future.result(timeout=timeout_sec)
        except FutureTimeoutError:
            return False
        except Exception:
            # the task failed; it is still finished
            return True
        return True

    def get_future(self, execution_id: str) -> Optional[Future]:
        with self._lock:
            return self._futures.get(execution_id)

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)
