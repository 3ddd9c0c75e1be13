"""Find test and environment definition files by ID."""
from pathlib import Path
from typing import Optional

TESTS_DIR = "tests"
ENVIRONMENTS_DIR = "environments"


class DefinitionFileFinder:
    """
    Search definition files under the given base directory:
      <base>/tests/**/<id>.json|.yaml|.yml
      <base>/environments/**/<name>.json|.yaml|.yml
    """

    priority = [".json", ".yaml", ".yml"]

    def __init__(self, base_dir: Path):
        self.base_dir = base_dir

    def find_test(self, test_id: str) -> Optional[Path]:
        return self._find(self.base_dir / TESTS_DIR, test_id)

    def find_environment(self, name: str) -> Optional[Path]:
        return self._find(self.base_dir / ENVIRONMENTS_DIR, name)

    def _find(self, root: Path, definition_id: str) -> Optional[Path]:
        if not root.is_dir():
            return None

        candidates: list[Path] = []
        # .json wins over YAML variants for the same id
        for ext in self.priority:
            for file_path in root.rglob(f"{definition_id}{ext}"):
                if file_path.is_file():
                    candidates.append(file_path)

        if not candidates:
            return None

        candidates.sort(key=lambda path: (self.priority.index(path.suffix), str(path)))
        return candidates[0]
