from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Tuple

from application.ports.logger import LoggerPort

LEVELS = {"debug": 10, "info": 20, "warning": 30, "error": 40}


@dataclass(frozen=True)
class LoggerRoute:
    logger: LoggerPort
    min_level: str = "debug"

    @property
    def threshold(self) -> int:
        return LEVELS.get(self.min_level.lower(), LEVELS["debug"])


@dataclass(frozen=True)
class CompositeLogger(LoggerPort):
    """
    Fans each event out to several loggers.
    A route only receives events at or above its min_level.
    """
    routes: Tuple[LoggerRoute, ...] = field(default_factory=tuple)

    @classmethod
    def of(cls, *loggers: Any) -> "CompositeLogger":
        """Accepts plain loggers or LoggerRoute entries."""
        routes: List[LoggerRoute] = []
        for item in loggers:
            routes.append(item if isinstance(item, LoggerRoute) else LoggerRoute(item))
        return cls(tuple(routes))

    def bind(self, **fields: Any) -> "CompositeLogger":
        return CompositeLogger(
            tuple(LoggerRoute(r.logger.bind(**fields), r.min_level) for r in self.routes)
        )

    def debug(self, event: str, **fields: Any) -> None:
        self._emit("debug", event, fields)

    def info(self, event: str, **fields: Any) -> None:
        self._emit("info", event, fields)

    def warning(self, event: str, **fields: Any) -> None:
        self._emit("warning", event, fields)

    def error(self, event: str, **fields: Any) -> None:
        self._emit("error", event, fields)

    def _emit(self, level: str, event: str, fields: Dict[str, Any]) -> None:
        value = LEVELS[level]
        for route in self.routes:
            if value >= route.threshold:
                getattr(route.logger, level)(event, **fields)
