# infrastructure/definitions/base_loader.py
from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict

from domain.definition import TestCase
from domain.environment import Environment
from domain.exceptions import ValidationError
from infrastructure.definitions.codec import decode_environment, decode_test_case


class DefinitionLoadError(Exception):
    pass


class DefinitionLoaderBase(ABC):
    """Reads a definition file; subclasses only parse the file format."""

    def load_test_case(self, path: str) -> TestCase:
        data = self.load_data(path)
        try:
            return decode_test_case(data)
        except (ValidationError, TypeError) as e:
            raise DefinitionLoadError(f"Invalid test definition {path}: {e}") from e

    def load_environment(self, path: str) -> Environment:
        data = self.load_data(path)
        try:
            return decode_environment(data)
        except (ValidationError, TypeError) as e:
            raise DefinitionLoadError(f"Invalid environment {path}: {e}") from e

    def load_data(self, path: str) -> Dict[str, Any]:
        p = Path(path)
        if not p.exists():
            raise DefinitionLoadError(f"Definition file not found: {path}")

        try:
            data = self._load_file(p)
        except DefinitionLoadError:
            raise
        except Exception as e:
            raise DefinitionLoadError(f"Definition file is unreadable: {path}: {e}") from e

        if data is None:
            raise DefinitionLoadError(f"Definition file is empty: {path}")
        if not isinstance(data, dict):
            raise DefinitionLoadError(f"Definition file is invalid: {path}")
        return data

    @abstractmethod
    def _load_file(self, path: Path) -> Any:
        ...
