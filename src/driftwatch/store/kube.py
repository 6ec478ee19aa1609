# src/driftwatch/store/kube.py: Pattern store backed by Kubernetes custom resources.
# Patterns are read from the cluster as custom objects and their conditions
# are written through the status subresource with a merge patch, so the
# watcher never clobbers the spec or other status fields. Condition writes
# carry the resourceVersion they were computed from, so a write racing
# another controller fails with a conflict instead of overwriting it.

from typing import List, Optional

from kubernetes import client, config as kube_config
from kubernetes.client import ApiException
from pydantic import ValidationError

from . import PatternStore
from ..conditions import Condition
from ..config import GitConfig, KubernetesSettings, Pattern
from ..util.errors import ConflictError, PatternNotFoundError, StoreError
from ..util.log import get_logger
from ..util.retry import retry_with_backoff

logger = get_logger(__name__)

# 409 is excluded: a conflict needs a re-read, not the same write again.
RETRYABLE_STATUS = {429, 500, 502, 503, 504}

def _load_kube_config():
    try:
        kube_config.load_incluster_config()
    except kube_config.ConfigException:
        kube_config.load_kube_config()

def _is_retryable(e: Exception) -> bool:
    return isinstance(e, ApiException) and e.status in RETRYABLE_STATUS

def pattern_from_object(obj: dict) -> Pattern:
    """Convert a Pattern custom object into the watcher's view of it."""
    metadata = obj.get("metadata") or {}
    spec = obj.get("spec") or {}
    status = obj.get("status") or {}
    try:
        return Pattern(
            name=metadata["name"],
            namespace=metadata.get("namespace", "default"),
            git_config=GitConfig.model_validate(spec.get("gitConfig") or {}),
            conditions=[Condition.model_validate(c) for c in status.get("conditions") or []],
            resource_version=metadata.get("resourceVersion"),
        )
    except (KeyError, ValidationError) as e:
        raise StoreError(f"Malformed pattern object: {e}")

class KubernetesPatternStore(PatternStore):
    def __init__(self, settings: Optional[KubernetesSettings] = None, api: Optional[client.CustomObjectsApi] = None):
        self.settings = settings or KubernetesSettings()
        if api is None:
            _load_kube_config()
            api = client.CustomObjectsApi()
        self.api = api

    def get_pattern(self, name: str, namespace: str) -> Pattern:
        s = self.settings
        try:
            obj = self.api.get_namespaced_custom_object(s.group, s.version, namespace, s.plural, name)
        except ApiException as e:
            if e.status == 404:
                raise PatternNotFoundError(f"Pattern '{name}' not found in namespace '{namespace}'.")
            raise StoreError(f"Failed to get pattern {namespace}/{name}: {e.reason}")
        return pattern_from_object(obj)

    def list_patterns(self) -> List[Pattern]:
        s = self.settings
        try:
            if s.namespace:
                result = self.api.list_namespaced_custom_object(s.group, s.version, s.namespace, s.plural)
            else:
                result = self.api.list_cluster_custom_object(s.group, s.version, s.plural)
        except ApiException as e:
            raise StoreError(f"Failed to list patterns: {e.reason}")

        patterns = []
        for item in result.get("items", []):
            try:
                patterns.append(pattern_from_object(item))
            except StoreError as e:
                logger.warning(f"Skipping pattern: {e}")
        return patterns

    def update_conditions(
        self,
        name: str,
        namespace: str,
        conditions: List[Condition],
        resource_version: Optional[str] = None,
    ) -> None:
        body = {"status": {"conditions": [c.to_status() for c in conditions]}}
        if resource_version is not None:
            body["metadata"] = {"resourceVersion": resource_version}
        try:
            self._patch_status(name, namespace, body)
        except ApiException as e:
            if e.status == 409:
                raise ConflictError(f"Pattern {namespace}/{name} was modified concurrently: {e.reason}")
            raise StoreError(f"Failed to update status of pattern {namespace}/{name}: {e.reason}")

    @retry_with_backoff(retries=3, backoff_in_seconds=1, exceptions=(ApiException,), should_retry=_is_retryable)
    def _patch_status(self, name: str, namespace: str, body: dict) -> None:
        s = self.settings
        self.api.patch_namespaced_custom_object_status(s.group, s.version, namespace, s.plural, name, body)
