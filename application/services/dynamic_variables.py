# application/services/dynamic_variables.py
"""
Built-in dynamic variables, generated fresh on every reference:
  {{$uuid}}, {{$timestamp}}, {{$randomEmail}}, ...
"""
from __future__ import annotations

import random
import string
import time
import uuid
from datetime import datetime, timezone
from typing import Callable, Dict, Optional

FIRST_NAMES = [
    "Alice", "Bob", "Charlie", "David", "Emma", "Frank", "Grace", "Henry", "Ivy", "Jack",
    "Kate", "Leo", "Mia", "Noah", "Olivia", "Peter", "Quinn", "Ryan", "Sophia", "Tom",
]

LAST_NAMES = [
    "Anderson", "Brown", "Clark", "Davis", "Evans", "Foster", "Garcia", "Harris", "Jackson", "King",
    "Lee", "Martin", "Nelson", "Owens", "Parker", "Quinn", "Roberts", "Smith", "Taylor", "Wilson",
]

EMAIL_DOMAINS = ["example.com", "test.com", "demo.com", "mail.com"]

_ALNUM = string.ascii_letters + string.digits


class DynamicVariableGenerator:
    def __init__(self, rng: Optional[random.Random] = None, clock: Callable[[], float] = time.time):
        self._rng = rng or random.Random()
        self._clock = clock
        self._generators: Dict[str, Callable[[], str]] = {
            "timestamp": lambda: str(int(self._clock())),
            "timestampMs": lambda: str(int(self._clock() * 1000)),
            "isoTimestamp": self._iso_timestamp,
            "uuid": lambda: str(uuid.uuid4()),
            "guid": lambda: str(uuid.uuid4()),
            "randomInt": lambda: str(self._rng.randint(0, 1000)),
            "randomString": lambda: self._random_string(10),
            "randomBoolean": lambda: "true" if self._rng.random() < 0.5 else "false",
            "randomEmail": self._random_email,
            "randomFirstName": lambda: self._rng.choice(FIRST_NAMES),
            "randomLastName": lambda: self._rng.choice(LAST_NAMES),
            "randomPhoneNumber": self._random_phone,
            "randomColor": lambda: f"#{self._rng.randint(0, 0xFFFFFF):06x}",
        }

    def is_builtin(self, name: str) -> bool:
        return _strip(name) in self._generators

    def generate(self, name: str) -> Optional[str]:
        """
        Generate a value for `$name` (or `name`). None when not a built-in.
        """
        gen = self._generators.get(_strip(name))
        return gen() if gen is not None else None

    def _iso_timestamp(self) -> str:
        dt = datetime.fromtimestamp(self._clock(), tz=timezone.utc)
        return dt.isoformat(timespec="milliseconds").replace("+00:00", "Z")

    def _random_string(self, length: int) -> str:
        return "".join(self._rng.choice(_ALNUM) for _ in range(length))

    def _random_email(self) -> str:
        return f"{self._random_string(8).lower()}@{self._rng.choice(EMAIL_DOMAINS)}"

    def _random_phone(self) -> str:
        area = self._rng.randint(100, 999)
        prefix = self._rng.randint(100, 999)
        line = self._rng.randint(1000, 9999)
        return f"+1-{area}-{prefix}-{line}"


def _strip(name: str) -> str:
    return name[1:] if name.startswith("$") else name
