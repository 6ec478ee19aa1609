# src/driftwatch/store/__init__.py: Pattern store interface.
# The drift watcher never owns pattern state. It reads a pattern's git
# configuration on every check and writes back its conditions through this
# interface, which has in-memory, file and Kubernetes implementations.

from abc import ABC, abstractmethod
from typing import List, Optional

from ..conditions import Condition
from ..config import Pattern

class PatternStore(ABC):
    @abstractmethod
    def get_pattern(self, name: str, namespace: str) -> Pattern:
        """Return the current state of a pattern, or raise PatternNotFoundError."""
        pass

    @abstractmethod
    def list_patterns(self) -> List[Pattern]:
        """Return every pattern the store knows about."""
        pass

    @abstractmethod
    def update_conditions(
        self,
        name: str,
        namespace: str,
        conditions: List[Condition],
        resource_version: Optional[str] = None,
    ) -> None:
        """
        Replace the status conditions of a pattern.

        When resource_version is given and the stored pattern has moved on
        since it was read, raise ConflictError instead of writing.
        """
        pass
