from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Callable, Optional

from concurrent.futures import Future


class RunSchedulerPort(ABC):
    @abstractmethod
    def submit(self, execution_id: str, task: Callable[[], Any]) -> Future:
        ...

    @abstractmethod
    def wait(self, execution_id: str, timeout_sec: float) -> bool:
        ...

    @abstractmethod
    def get_future(self, execution_id: str) -> Optional[Future]:
        ...
