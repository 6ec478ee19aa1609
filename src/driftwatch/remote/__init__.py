# src/driftwatch/remote/__init__.py: Remote reference client interface.
# This package defines the narrow capability the drift detector needs from a
# git remote, listing its references, so that the network-facing
# implementation can be swapped for an in-memory one in tests.

from abc import ABC, abstractmethod
from typing import Callable, List

from pydantic import BaseModel, Field

from ..refs import Reference

class RemoteConfig(BaseModel):
    """A named remote and the URLs it can be reached at."""
    name: str
    urls: List[str] = Field(default_factory=list)

class RemoteClient(ABC):
    def __init__(self, config: RemoteConfig):
        self.config = config

    @abstractmethod
    def list(self) -> List[Reference]:
        """List every reference the remote advertises."""
        pass

RemoteClientFactory = Callable[[RemoteConfig], RemoteClient]
