# src/driftwatch/drift.py: Origin/target drift detection.
# This module compares the commit a pattern's origin repository tracks with
# the commit its target repository tracks. The pattern's git configuration is
# re-read from the store on every check so that edits are picked up without
# re-registering the pattern with the watcher.

from typing import List, Optional, Tuple

from .refs import HEAD, Reference, branch_ref, find_reference
from .remote import RemoteClientFactory, RemoteConfig
from .resolver import get_head_branch
from .store import PatternStore
from .util.errors import ConfigError, ResolutionError
from .util.log import get_logger

logger = get_logger(__name__)

ORIGIN = "origin"
TARGET = "target"

class DriftDetector:
    """
    Decides whether the origin and target repositories of a pattern diverged.
    """

    def __init__(self, store: PatternStore, remote_factory: RemoteClientFactory):
        self.store = store
        self.remote_factory = remote_factory

    def has_drifted(self, name: str, namespace: str) -> bool:
        """
        Return True when the resolved origin and target commits differ.

        Raises:
            ConfigError: If the pattern lacks an origin or target repository.
            GitError: If listing either remote fails (origin is listed first,
                and target is not contacted when origin fails).
            ResolutionError: If a remote advertises no references or the
                tracked revision cannot be found.
        """
        git_config = self.store.get_pattern(name, namespace).git_config
        if not git_config.origin_repo:
            raise ConfigError(f"Pattern {namespace}/{name} has no origin repository configured.")
        if not git_config.target_repo:
            raise ConfigError(f"Pattern {namespace}/{name} has no target repository configured.")

        origin_refs = self._list(ORIGIN, git_config.origin_repo)
        target_refs = self._list(TARGET, git_config.target_repo)

        origin_hash = self._tracked_hash(ORIGIN, git_config.origin_repo, origin_refs, git_config.origin_revision)
        target_hash = self._tracked_hash(TARGET, git_config.target_repo, target_refs, git_config.target_revision)

        logger.debug(f"{namespace}/{name}: origin={origin_hash} target={target_hash}")
        return origin_hash != target_hash

    def _list(self, remote: str, url: str) -> List[Reference]:
        client = self.remote_factory(RemoteConfig(name=remote, urls=[url]))
        references = client.list()
        if not references:
            raise ResolutionError(f"no references found for {remote} {url}")
        return references

    def _tracked_hash(self, remote: str, url: str, references: List[Reference], revision: str) -> str:
        ref, name = self._tracked_reference(references, revision)
        if ref is None or not ref.hash:
            raise ResolutionError(f"unable to find {name} for {remote} {url}")
        return ref.hash

    def _tracked_reference(self, references: List[Reference], revision: str) -> Tuple[Optional[Reference], str]:
        # Only the branch form of an explicit revision is looked up here.
        if revision:
            name = branch_ref(revision)
            return find_reference(references, name), name
        try:
            return get_head_branch(references), HEAD
        except ResolutionError:
            return None, HEAD
