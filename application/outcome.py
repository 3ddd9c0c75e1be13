# application/outcome.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class Resolved:
    value: str


@dataclass(frozen=True)
class CycleDetected:
    variable: str


ResolveOutcome = Union[Resolved, CycleDetected]
