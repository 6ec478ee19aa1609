# src/driftwatch/config.py: Pydantic models for configuration.
# This module defines the git configuration carried by a Pattern, the Pattern
# itself as the watcher sees it, and the schema of the daemon's 'config.yaml'.
# It is responsible for loading and validating that file and for expanding
# environment variables in path-like values.

from __future__ import annotations

import os
import yaml
from pathlib import Path
from pydantic import BaseModel, ConfigDict, Field, ValidationError
from typing import Any, List, Literal, Optional

from .conditions import Condition
from .util.paths import get_default_config_path, expand_path
from .util.errors import ConfigError

DEFAULT_POLL_INTERVAL = 180
DISABLED_POLL_INTERVAL = -1

# --- Pattern Models ---

class GitConfig(BaseModel):
    """The 'spec.gitConfig' block of a Pattern."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    origin_repo: str = Field("", alias="originRepo")
    target_repo: str = Field("", alias="targetRepo")
    origin_revision: str = Field("", alias="originRevision")
    target_revision: str = Field("", alias="targetRevision")
    poll_interval: int = Field(DEFAULT_POLL_INTERVAL, alias="pollInterval")

    @property
    def watchable(self) -> bool:
        """Both repositories are set and polling has not been disabled."""
        return (
            self.origin_repo != ""
            and self.target_repo != ""
            and self.poll_interval != DISABLED_POLL_INTERVAL
        )

class Pattern(BaseModel):
    """A pattern resource reduced to what the drift watcher reads and writes."""
    model_config = ConfigDict(populate_by_name=True)

    name: str
    namespace: str = "default"
    git_config: GitConfig = Field(default_factory=GitConfig, alias="gitConfig")
    conditions: List[Condition] = Field(default_factory=list)
    # Opaque version of the stored object, used to reject stale status writes.
    resource_version: Optional[str] = Field(None, alias="resourceVersion")

    @property
    def key(self) -> str:
        return f"{self.namespace}/{self.name}"

# --- Daemon Configuration Schema ---

class Defaults(BaseModel):
    poll_interval_sec: int = DEFAULT_POLL_INTERVAL
    git_timeout_sec: int = 120
    resync_interval_sec: int = 30

class KubernetesSettings(BaseModel):
    group: str = "gitops.hybrid-cloud-patterns.io"
    version: str = "v1alpha1"
    plural: str = "patterns"
    # Restrict to a single namespace; None watches patterns cluster-wide.
    namespace: Optional[str] = None

class LoggingSettings(BaseModel):
    level: str = "INFO"
    json_format: bool = Field(True, alias="json")

class Config(BaseModel):
    version: int
    store: Literal["file", "kubernetes"] = "file"
    status_file: Optional[Path] = None
    defaults: Defaults = Field(default_factory=Defaults)
    kubernetes: KubernetesSettings = Field(default_factory=KubernetesSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    patterns: List[Pattern] = Field(default_factory=list)

# --- Configuration Loading ---

def _expand_vars_in_obj(obj: Any) -> Any:
    """Recursively expand environment variables in a loaded YAML object."""
    if isinstance(obj, dict):
        return {key: _expand_vars_in_obj(value) for key, value in obj.items()}
    if isinstance(obj, list):
        return [_expand_vars_in_obj(item) for item in obj]
    if isinstance(obj, str):
        # Values may be URLs, so only variables are expanded; paths are resolved after validation.
        return os.path.expandvars(obj)
    return obj

def load_config(path: Optional[Path] = None) -> Config:
    """
    Loads, validates, and returns the configuration.

    Args:
        path: The configuration file. Defaults to the XDG config location.

    Raises:
        ConfigError: If the file is missing, is not valid YAML, or fails validation.
    """
    config_path = path or get_default_config_path()
    if not config_path.is_file():
        raise ConfigError(
            f"Configuration file not found. Please create it at '{config_path}'."
        )

    try:
        with open(config_path, "r") as f:
            raw_config = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Error parsing YAML configuration: {e}")

    expanded_config = _expand_vars_in_obj(raw_config)

    try:
        config = Config.model_validate(expanded_config)
    except ValidationError as e:
        raise ConfigError(f"Configuration validation failed: {e}")

    if config.status_file is not None:
        config.status_file = expand_path(config.status_file)

    # Patterns without an explicit pollInterval inherit the configured default.
    for pattern in config.patterns:
        if "poll_interval" not in pattern.git_config.model_fields_set:
            pattern.git_config.poll_interval = config.defaults.poll_interval_sec

    return config
