# src/driftwatch/testing.py: Test doubles for the remote reference client.
# These serve canned reference listings per URL, so the drift detector and
# the scheduler can be exercised without network access or a git binary.

import threading
from typing import Dict, List, Optional

from .refs import Reference
from .remote import RemoteClient, RemoteConfig

class StaticRemoteClient(RemoteClient):
    def __init__(self, config: RemoteConfig, factory: "StaticRemoteFactory"):
        super().__init__(config)
        self._factory = factory

    def list(self) -> List[Reference]:
        return self._factory.list_for(self.config)

class StaticRemoteFactory:
    """
    A RemoteClientFactory whose clients answer from an in-memory table.

    Listings can be replaced at any time with set_refs(); set_error() makes
    listing a URL raise instead. Every listing is recorded in 'calls' as
    (remote name, url).
    """
    def __init__(self, refs: Optional[Dict[str, List[Reference]]] = None):
        self._lock = threading.Lock()
        self._refs: Dict[str, List[Reference]] = dict(refs or {})
        self._errors: Dict[str, Exception] = {}
        self.calls: List[tuple] = []

    def __call__(self, config: RemoteConfig) -> RemoteClient:
        return StaticRemoteClient(config, self)

    def set_refs(self, url: str, refs: List[Reference]) -> None:
        with self._lock:
            self._refs[url] = list(refs)
            self._errors.pop(url, None)

    def set_error(self, url: str, error: Exception) -> None:
        with self._lock:
            self._errors[url] = error

    def list_for(self, config: RemoteConfig) -> List[Reference]:
        url = config.urls[0] if config.urls else ""
        with self._lock:
            self.calls.append((config.name, url))
            if url in self._errors:
                raise self._errors[url]
            return [ref.model_copy() for ref in self._refs.get(url, [])]

def head_refs(branch: str, commit: str, extra: Optional[Dict[str, str]] = None) -> List[Reference]:
    """A listing with a symbolic HEAD pointing at 'branch'; extra maps ref names to hashes."""
    branch_name = f"refs/heads/{branch}"
    refs = [
        Reference(name="HEAD", hash=commit, target=branch_name),
        Reference(name=branch_name, hash=commit),
    ]
    refs.extend(Reference(name=name, hash=value) for name, value in (extra or {}).items())
    return refs
