# src/driftwatch/resolver.py: Revision selector resolution.
# This module turns the revision selectors users put in a pattern's git
# configuration (a branch, a tag, a full commit hash, HEAD, or nothing at all)
# into a concrete commit hash, given the references a remote advertised. It
# performs no I/O of its own.

from __future__ import annotations

from typing import Dict, List, Optional

from .refs import (
    HEAD,
    GitObject,
    ObjectType,
    Reference,
    branch_ref,
    find_reference,
    follow_reference,
    index_objects,
    is_hash,
    remote_branch_ref,
    remote_head_ref,
    tag_ref,
)
from .util.errors import ResolutionError

DEFAULT_BRANCH = "main"
DEFAULT_REMOTE = "origin"

def get_hash_from_reference(
    references: List[Reference],
    name: str,
    objects: Optional[Dict[str, GitObject]] = None,
) -> str:
    """
    Return the commit hash a named reference points at.

    Symbolic references are followed. Tags are dereferenced through the object
    index: a lightweight tag names a commit directly, an annotated tag is a
    tag object that must itself target a commit.

    Raises:
        ResolutionError: If the reference or its tag object cannot be found,
            or the tag does not lead to a commit.
    """
    ref = follow_reference(references, name)
    if ref is None:
        raise ResolutionError(f"reference not found: {name}")

    if not ref.is_tag:
        return ref.hash

    if objects is None:
        objects = index_objects(references)
    obj = objects.get(ref.hash)
    if obj is None:
        raise ResolutionError(f"object not found: {ref.hash}")

    if obj.type == ObjectType.TAG:
        if obj.target_type != ObjectType.COMMIT:
            target_type = obj.target_type.value if obj.target_type else "unknown"
            raise ResolutionError(f"unsupported tag object target '{target_type}'")
        return obj.target
    if obj.type == ObjectType.COMMIT:
        return obj.hash

    raise ResolutionError(f"unsupported tag target '{obj.type.value}'")

def get_commit_from_target(
    references: List[Reference],
    selector: str,
    objects: Optional[Dict[str, GitObject]] = None,
) -> str:
    """
    Resolve a revision selector to a commit hash.

    An empty selector means the 'main' branch. A full commit hash known to the
    listing, in either case, is returned lowercased. 'HEAD' follows the
    remote's symbolic HEAD. Anything else is tried as a branch, a tag, a
    remote HEAD alias and finally a remote-tracking branch of 'origin', in
    that order.
    """
    if objects is None:
        objects = index_objects(references)

    if not selector:
        return get_hash_from_reference(references, branch_ref(DEFAULT_BRANCH), objects)

    commit = selector.lower()
    if is_hash(commit) and commit in objects:
        return commit

    if selector == HEAD:
        return get_hash_from_reference(references, HEAD, objects)

    candidates = (
        branch_ref(selector),
        tag_ref(selector),
        remote_head_ref(selector),
        remote_branch_ref(DEFAULT_REMOTE, selector),
    )
    for name in candidates:
        try:
            return get_hash_from_reference(references, name, objects)
        except ResolutionError:
            continue

    raise ResolutionError(f"unknown target '{selector}'")

def get_head_branch(references: List[Reference]) -> Reference:
    """
    Return the reference the remote's symbolic HEAD points at.

    This is a two-step lookup: find HEAD, then look up the name it targets in
    the same listing. It does not chase further symbolic hops.
    """
    if not references:
        raise ResolutionError("no references found")

    head = find_reference(references, HEAD)
    if head is None or not head.is_symbolic:
        raise ResolutionError(f"unable to find {HEAD}")

    ref = find_reference(references, head.target)
    if ref is None:
        raise ResolutionError(f"unable to find {head.target}")
    return ref

resolve = get_commit_from_target
