# infrastructure/definitions/yaml_loader.py
from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from infrastructure.definitions.base_loader import DefinitionLoaderBase


class YamlDefinitionLoader(DefinitionLoaderBase):
    def _load_file(self, path: Path) -> Any:
        with path.open("r", encoding="utf-8") as handle:
            return yaml.safe_load(handle)
