# src/driftwatch/conditions.py: Pattern status conditions.
# This module models the conditions written to a pattern's status and the
# transition rules for the git-sync family: at most one of GitInSync and
# GitOutOfSync is ever 'True', and switching between them first flips the
# previously active condition to 'False'.

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_serializer

from .util.errors import ConflictError
from .util.log import get_logger
from .util.retry import retry_with_backoff

if TYPE_CHECKING:
    from .store import PatternStore

logger = get_logger(__name__)

RFC3339 = "%Y-%m-%dT%H:%M:%SZ"

class ConditionType(str, Enum):
    GIT_OUT_OF_SYNC = "GitOutOfSync"
    GIT_IN_SYNC = "GitInSync"
    SYNCED = "Synced"
    OUT_OF_SYNC = "OutOfSync"
    UNKNOWN = "Unknown"
    DEGRADED = "Degraded"
    PROGRESSING = "Progressing"
    MISSING = "Missing"
    SUSPENDED = "Suspended"

class ConditionStatus(str, Enum):
    TRUE = "True"
    FALSE = "False"
    UNKNOWN = "Unknown"

GIT_SYNC_TYPES = (ConditionType.GIT_IN_SYNC, ConditionType.GIT_OUT_OF_SYNC)

MESSAGES = {
    ConditionType.GIT_OUT_OF_SYNC: "Git repositories are out of sync",
    ConditionType.GIT_IN_SYNC: "Git repositories are in sync",
}

class Condition(BaseModel):
    model_config = ConfigDict(populate_by_name=True, use_enum_values=False)

    type: ConditionType
    status: ConditionStatus
    last_update_time: datetime = Field(alias="lastUpdateTime")
    last_transition_time: Optional[datetime] = Field(None, alias="lastTransitionTime")
    message: str = ""

    @field_serializer("last_update_time", "last_transition_time")
    def _rfc3339(self, value: Optional[datetime]) -> Optional[str]:
        return value.strftime(RFC3339) if value else None

    def to_status(self) -> dict:
        """Serialise with the camelCase keys used on the resource status."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

def get_condition_by_status(
    conditions: List[Condition], status: ConditionStatus
) -> Tuple[int, Optional[Condition]]:
    """Return the index and first condition with the given status, or (-1, None)."""
    for i, condition in enumerate(conditions or []):
        if condition.status == status:
            return i, condition
    return -1, None

def get_condition_by_type(
    conditions: List[Condition], condition_type: ConditionType
) -> Tuple[int, Optional[Condition]]:
    """Return the index and first condition with the given type, or (-1, None)."""
    for i, condition in enumerate(conditions or []):
        if condition.type == condition_type:
            return i, condition
    return -1, None

def set_git_sync_condition(
    conditions: List[Condition], drifted: bool, now: datetime
) -> List[Condition]:
    """
    Apply a drift result to a condition list and return the new list.

    The input list is not modified. Conditions outside the git-sync family are
    left untouched.
    """
    new_type = ConditionType.GIT_OUT_OF_SYNC if drifted else ConditionType.GIT_IN_SYNC
    result = [c.model_copy() for c in conditions or []]

    for i, condition in enumerate(result):
        if (
            condition.type in GIT_SYNC_TYPES
            and condition.type != new_type
            and condition.status == ConditionStatus.TRUE
        ):
            result[i] = condition.model_copy(
                update={"status": ConditionStatus.FALSE, "last_update_time": now}
            )

    i, current = get_condition_by_type(result, new_type)
    if current is not None and current.status == ConditionStatus.TRUE:
        result[i] = current.model_copy(update={"last_update_time": now})
    elif current is not None:
        result[i] = current.model_copy(update={
            "status": ConditionStatus.TRUE,
            "last_update_time": now,
            "last_transition_time": now,
            "message": MESSAGES[new_type],
        })
    else:
        result.append(Condition(
            type=new_type,
            status=ConditionStatus.TRUE,
            last_update_time=now,
            last_transition_time=now,
            message=MESSAGES[new_type],
        ))
    return result

class ConditionReporter:
    """
    Persists drift results onto a pattern's status through a PatternStore.

    The write is a read-modify-write against the stored conditions. It carries
    the version it read, and a conflicting write by another party is retried
    from a fresh read so that party's conditions are kept.
    """

    def __init__(self, store: "PatternStore"):
        self.store = store

    def report(self, name: str, namespace: str, drifted: bool, now: datetime) -> List[Condition]:
        conditions = self._apply(name, namespace, drifted, now)
        state = "out of sync" if drifted else "in sync"
        logger.info(f"Git repositories for pattern {namespace}/{name} are {state}")
        return conditions

    @retry_with_backoff(retries=3, backoff_in_seconds=0.5, exceptions=(ConflictError,))
    def _apply(self, name: str, namespace: str, drifted: bool, now: datetime) -> List[Condition]:
        pattern = self.store.get_pattern(name, namespace)
        conditions = set_git_sync_condition(pattern.conditions, drifted, now)
        self.store.update_conditions(name, namespace, conditions, resource_version=pattern.resource_version)
        return conditions
