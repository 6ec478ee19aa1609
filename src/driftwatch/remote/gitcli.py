# src/driftwatch/remote/gitcli.py: Remote client backed by the git binary.
# This module implements 'RemoteClient' with 'git ls-remote', which talks to
# the remote over whatever transport the URL names (https, ssh, file) without
# a local clone. The subprocess timeout bounds every listing.

from typing import List

from . import RemoteClient, RemoteConfig
from ..gitwrap import git_ls_remote
from ..refs import Reference
from ..util.errors import GitError

class GitRemoteClient(RemoteClient):
    """
    Lists references with 'git ls-remote --symref' against the remote's first URL.
    """
    def __init__(self, config: RemoteConfig, timeout: int = 120):
        super().__init__(config)
        self.timeout = timeout

    def list(self) -> List[Reference]:
        if not self.config.urls:
            raise GitError(f"Remote '{self.config.name}' has no URL configured.")
        return git_ls_remote(self.config.urls[0], timeout=self.timeout)

def git_remote_factory(timeout: int = 120):
    """Return a RemoteClientFactory producing GitRemoteClients with the given timeout."""
    def factory(config: RemoteConfig) -> RemoteClient:
        return GitRemoteClient(config, timeout=timeout)
    return factory
