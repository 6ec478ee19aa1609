# src/driftwatch/refs.py: Git reference and object models.
# A remote is observed only through the references it advertises. This module
# models those references (including symbolic ones such as HEAD and the
# peeled commit of annotated tags) and derives the small object index the
# resolver needs to dereference tags.

from __future__ import annotations

import re
from enum import Enum
from typing import Dict, Iterable, List, Optional

from pydantic import BaseModel

HEAD = "HEAD"
BRANCH_PREFIX = "refs/heads/"
TAG_PREFIX = "refs/tags/"
REMOTE_PREFIX = "refs/remotes/"

# Upper bound on symbolic indirection when following a reference.
MAX_RESOLVE_DEPTH = 1024

_HASH_RE = re.compile(r"^(?:[0-9a-f]{40}|[0-9a-f]{64})$")

class ObjectType(str, Enum):
    COMMIT = "commit"
    TAG = "tag"
    TREE = "tree"
    BLOB = "blob"

class Reference(BaseModel):
    """A named pointer, either to an object hash or (symbolically) to another reference."""
    name: str
    hash: str = ""
    target: Optional[str] = None
    # For annotated tags: the commit the tag object points at, when advertised.
    peeled: Optional[str] = None

    @property
    def is_symbolic(self) -> bool:
        return self.target is not None

    @property
    def is_tag(self) -> bool:
        return self.name.startswith(TAG_PREFIX)

    @classmethod
    def symbolic(cls, name: str, target: str) -> "Reference":
        return cls(name=name, target=target)

    @classmethod
    def to_hash(cls, name: str, hash: str, peeled: Optional[str] = None) -> "Reference":
        return cls(name=name, hash=hash, peeled=peeled)

class GitObject(BaseModel):
    hash: str
    type: ObjectType
    target: Optional[str] = None
    target_type: Optional[ObjectType] = None

def branch_ref(name: str) -> str:
    return BRANCH_PREFIX + name

def tag_ref(name: str) -> str:
    return TAG_PREFIX + name

def remote_head_ref(remote: str) -> str:
    return f"{REMOTE_PREFIX}{remote}/{HEAD}"

def remote_branch_ref(remote: str, name: str) -> str:
    return f"{REMOTE_PREFIX}{remote}/{name}"

def is_hash(value: str) -> bool:
    return bool(_HASH_RE.match(value))

def find_reference(references: Iterable[Reference], name: str) -> Optional[Reference]:
    """Look up a reference by exact name, without following symbolic targets."""
    for ref in references:
        if ref.name == name:
            return ref
    return None

def follow_reference(references: List[Reference], name: str) -> Optional[Reference]:
    """Look up a reference and follow symbolic targets down to a hash reference."""
    ref = find_reference(references, name)
    depth = 0
    while ref is not None and ref.is_symbolic:
        depth += 1
        if depth > MAX_RESOLVE_DEPTH:
            return None
        ref = find_reference(references, ref.target)
    return ref

def index_objects(references: Iterable[Reference]) -> Dict[str, GitObject]:
    """
    Build the object index implied by a reference listing.

    A remote listing does not carry object types. Annotated tags are
    recognised by their peeled entry and indexed as tag objects targeting
    that commit; every other advertised hash is indexed as a commit.
    """
    objects: Dict[str, GitObject] = {}
    for ref in references:
        if ref.is_symbolic or not ref.hash:
            continue
        if ref.peeled and ref.peeled != ref.hash:
            objects[ref.hash] = GitObject(
                hash=ref.hash,
                type=ObjectType.TAG,
                target=ref.peeled,
                target_type=ObjectType.COMMIT,
            )
            objects.setdefault(ref.peeled, GitObject(hash=ref.peeled, type=ObjectType.COMMIT))
        else:
            objects.setdefault(ref.hash, GitObject(hash=ref.hash, type=ObjectType.COMMIT))
    return objects
