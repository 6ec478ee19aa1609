# src/driftwatch/store/file.py: YAML-backed pattern store.
# Patterns are declared in the daemon's configuration file and re-read on
# every access, so edits take effect on the next check. Conditions are kept
# in a separate status file, keyed by "namespace/name", which is rewritten
# atomically.

import threading
from pathlib import Path
from typing import Dict, List, Optional

import yaml
from pydantic import ValidationError

from . import PatternStore
from ..conditions import Condition
from ..config import Pattern, load_config
from ..util.errors import PatternNotFoundError, StoreError
from ..util.fs import atomic_write
from ..util.paths import get_default_status_path

class FilePatternStore(PatternStore):
    def __init__(self, config_path: Optional[Path] = None, status_path: Optional[Path] = None):
        self.config_path = config_path
        self.status_path = status_path or get_default_status_path()
        self._lock = threading.Lock()

    def get_pattern(self, name: str, namespace: str) -> Pattern:
        for pattern in self.list_patterns():
            if pattern.name == name and pattern.namespace == namespace:
                return pattern
        raise PatternNotFoundError(f"Pattern '{name}' not found in namespace '{namespace}'.")

    def list_patterns(self) -> List[Pattern]:
        config = load_config(self.config_path)
        with self._lock:
            status = self._read_status()
        patterns = []
        for pattern in config.patterns:
            raw_conditions = status.get(pattern.key, [])
            try:
                conditions = [Condition.model_validate(c) for c in raw_conditions]
            except ValidationError as e:
                raise StoreError(f"Invalid status recorded for pattern {pattern.key}: {e}")
            patterns.append(pattern.model_copy(update={"conditions": conditions}))
        return patterns

    def update_conditions(
        self,
        name: str,
        namespace: str,
        conditions: List[Condition],
        resource_version: Optional[str] = None,
    ) -> None:
        # The daemon lock makes this process the only writer; versions are not tracked.
        with self._lock:
            status = self._read_status()
            status[f"{namespace}/{name}"] = [c.to_status() for c in conditions]
            try:
                atomic_write(self.status_path, yaml.safe_dump(status, sort_keys=True))
            except OSError as e:
                raise StoreError(f"Failed to write status file '{self.status_path}': {e}")

    def _read_status(self) -> Dict[str, list]:
        if not self.status_path.is_file():
            return {}
        try:
            with open(self.status_path, "r") as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise StoreError(f"Failed to read status file '{self.status_path}': {e}")
        if not isinstance(data, dict):
            raise StoreError(f"Status file '{self.status_path}' is not a mapping.")
        return data
