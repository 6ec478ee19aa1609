# tests/unit/test_resolver.py: Unit tests for revision selector resolution.

import pytest

from driftwatch.refs import GitObject, ObjectType, Reference
from driftwatch.resolver import (
    get_commit_from_target,
    get_hash_from_reference,
    get_head_branch,
    resolve,
)
from driftwatch.util.errors import ResolutionError

from conftest import COMMIT_A, COMMIT_B, COMMIT_C, TAG_OBJECT

@pytest.fixture
def references():
    """A listing with HEAD -> main, a feature branch, a lightweight and an annotated tag."""
    return [
        Reference.symbolic("HEAD", "refs/heads/main"),
        Reference.to_hash("refs/heads/main", COMMIT_A),
        Reference.to_hash("refs/heads/feature", COMMIT_B),
        Reference.to_hash("refs/tags/v1.0", COMMIT_C),
        Reference.to_hash("refs/tags/v2.0", TAG_OBJECT, peeled=COMMIT_B),
    ]

def test_empty_selector_resolves_main(references):
    """Tests that an empty selector behaves exactly like 'main'."""
    assert get_commit_from_target(references, "") == COMMIT_A
    assert get_commit_from_target(references, "") == get_commit_from_target(references, "main")

def test_resolve_branch(references):
    assert resolve(references, "feature") == COMMIT_B

def test_resolve_head(references):
    """Tests that 'HEAD' follows the symbolic reference to the default branch."""
    assert resolve(references, "HEAD") == COMMIT_A

def test_resolve_lightweight_tag(references):
    assert resolve(references, "v1.0") == COMMIT_C

def test_resolve_annotated_tag_returns_commit(references):
    """Tests that an annotated tag resolves to its commit, not the tag object."""
    commit = resolve(references, "v2.0")
    assert commit == COMMIT_B
    assert commit != TAG_OBJECT

def test_resolve_known_commit_hash(references):
    """Tests that a full hash present in the listing is returned as is."""
    assert resolve(references, COMMIT_C) == COMMIT_C

def test_resolve_uppercase_commit_hash(references):
    assert resolve(references, COMMIT_C.upper()) == COMMIT_C

def test_resolve_unknown_commit_hash(references):
    """Tests that a well-formed hash the remote does not advertise is unknown."""
    with pytest.raises(ResolutionError, match="unknown target"):
        resolve(references, "e" * 40)

def test_branch_wins_over_tag_of_same_name():
    references = [
        Reference.to_hash("refs/heads/release", COMMIT_A),
        Reference.to_hash("refs/tags/release", COMMIT_B),
    ]
    assert resolve(references, "release") == COMMIT_A

def test_resolve_remote_head_alias():
    """Tests that a remote name resolves through refs/remotes/<name>/HEAD."""
    references = [
        Reference.symbolic("refs/remotes/upstream/HEAD", "refs/remotes/upstream/main"),
        Reference.to_hash("refs/remotes/upstream/main", COMMIT_B),
    ]
    assert resolve(references, "upstream") == COMMIT_B

def test_resolve_remote_tracking_branch():
    references = [Reference.to_hash("refs/remotes/origin/hotfix", COMMIT_C)]
    assert resolve(references, "hotfix") == COMMIT_C

def test_resolve_unknown_target(references):
    with pytest.raises(ResolutionError, match="unknown target 'nope'"):
        resolve(references, "nope")

def test_missing_main_branch():
    """Tests that an empty selector fails when the remote has no main branch."""
    references = [Reference.to_hash("refs/heads/master", COMMIT_A)]
    with pytest.raises(ResolutionError):
        resolve(references, "")

def test_tag_object_with_unsupported_target():
    """Tests that a tag object pointing at something other than a commit is rejected."""
    references = [Reference.to_hash("refs/tags/tree-tag", TAG_OBJECT)]
    objects = {
        TAG_OBJECT: GitObject(
            hash=TAG_OBJECT, type=ObjectType.TAG, target=COMMIT_A, target_type=ObjectType.TREE
        ),
    }
    with pytest.raises(ResolutionError, match="unsupported tag object target 'tree'"):
        get_hash_from_reference(references, "refs/tags/tree-tag", objects)

def test_tag_pointing_at_blob():
    references = [Reference.to_hash("refs/tags/blob-tag", COMMIT_A)]
    objects = {COMMIT_A: GitObject(hash=COMMIT_A, type=ObjectType.BLOB)}
    with pytest.raises(ResolutionError, match="unsupported tag target 'blob'"):
        get_hash_from_reference(references, "refs/tags/blob-tag", objects)

def test_get_head_branch(references):
    ref = get_head_branch(references)
    assert ref.name == "refs/heads/main"
    assert ref.hash == COMMIT_A

def test_get_head_branch_without_head():
    """Tests that a listing with no symbolic HEAD is an error."""
    references = [Reference.to_hash("refs/heads/main", COMMIT_A)]
    with pytest.raises(ResolutionError, match="unable to find HEAD"):
        get_head_branch(references)

def test_get_head_branch_with_detached_head():
    """Tests that a HEAD advertised only as a hash does not count as symbolic."""
    references = [Reference.to_hash("HEAD", COMMIT_A), Reference.to_hash("refs/heads/main", COMMIT_A)]
    with pytest.raises(ResolutionError, match="unable to find HEAD"):
        get_head_branch(references)

def test_get_head_branch_empty_listing():
    """Tests that an empty listing is reported differently from a missing HEAD."""
    with pytest.raises(ResolutionError, match="no references found"):
        get_head_branch([])

def test_get_head_branch_dangling_target():
    references = [Reference.symbolic("HEAD", "refs/heads/gone")]
    with pytest.raises(ResolutionError, match="unable to find refs/heads/gone"):
        get_head_branch(references)
