# tests/unit/conftest.py: Shared fixtures for the unit tests.

import pytest

from driftwatch.config import GitConfig, Pattern
from driftwatch.store.memory import InMemoryPatternStore
from driftwatch.testing import StaticRemoteFactory

ORIGIN_URL = "https://git.example.com/upstream/multicloud-gitops.git"
TARGET_URL = "https://gitea.cluster.local/fork/multicloud-gitops.git"

COMMIT_A = "a" * 40
COMMIT_B = "b" * 40
COMMIT_C = "c" * 40
TAG_OBJECT = "d" * 40

def make_pattern(name="mcg", namespace="patterns", **git) -> Pattern:
    git.setdefault("originRepo", ORIGIN_URL)
    git.setdefault("targetRepo", TARGET_URL)
    return Pattern(name=name, namespace=namespace, git_config=GitConfig.model_validate(git))

@pytest.fixture
def store() -> InMemoryPatternStore:
    return InMemoryPatternStore([make_pattern()])

@pytest.fixture
def remotes() -> StaticRemoteFactory:
    return StaticRemoteFactory()
