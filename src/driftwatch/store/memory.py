# src/driftwatch/store/memory.py: In-process pattern store.

import itertools
import threading
from typing import Dict, List, Optional, Tuple

from . import PatternStore
from ..conditions import Condition
from ..config import GitConfig, Pattern
from ..util.errors import ConflictError, PatternNotFoundError

class InMemoryPatternStore(PatternStore):
    """
    A thread-safe dictionary of patterns, for tests and for embedding the
    watcher in a process that already holds pattern state.

    Every write stamps the pattern with a new resource version, so status
    writes carrying a stale version are rejected like on a real API server.
    """
    def __init__(self, patterns: List[Pattern] = None):
        self._lock = threading.Lock()
        self._patterns: Dict[Tuple[str, str], Pattern] = {}
        self._versions = itertools.count(1)
        for pattern in patterns or []:
            self.put(pattern)

    def put(self, pattern: Pattern) -> None:
        with self._lock:
            stored = pattern.model_copy(deep=True)
            stored.resource_version = str(next(self._versions))
            self._patterns[(pattern.name, pattern.namespace)] = stored

    def delete(self, name: str, namespace: str) -> None:
        with self._lock:
            self._patterns.pop((name, namespace), None)

    def set_git_config(self, name: str, namespace: str, git_config: GitConfig) -> None:
        with self._lock:
            pattern = self._get(name, namespace)
            pattern.git_config = git_config.model_copy()
            pattern.resource_version = str(next(self._versions))

    def get_pattern(self, name: str, namespace: str) -> Pattern:
        with self._lock:
            return self._get(name, namespace).model_copy(deep=True)

    def list_patterns(self) -> List[Pattern]:
        with self._lock:
            return [p.model_copy(deep=True) for p in self._patterns.values()]

    def update_conditions(
        self,
        name: str,
        namespace: str,
        conditions: List[Condition],
        resource_version: Optional[str] = None,
    ) -> None:
        with self._lock:
            pattern = self._get(name, namespace)
            if resource_version is not None and resource_version != pattern.resource_version:
                raise ConflictError(
                    f"Pattern {namespace}/{name} was modified (version {pattern.resource_version}, "
                    f"expected {resource_version})."
                )
            pattern.conditions = [c.model_copy() for c in conditions]
            pattern.resource_version = str(next(self._versions))

    def _get(self, name: str, namespace: str) -> Pattern:
        try:
            return self._patterns[(name, namespace)]
        except KeyError:
            raise PatternNotFoundError(f"Pattern '{name}' not found in namespace '{namespace}'.")
