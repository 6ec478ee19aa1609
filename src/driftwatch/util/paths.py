# src/driftwatch/util/paths.py: XDG-compliant path resolution.
# This module resolves the per-user configuration and state directories used
# by driftwatch (config file, persisted pattern status, daemon lock file) on
# both Linux and Windows, honouring the user's environment variables.

import os
from pathlib import Path
import platformdirs

APP_NAME = "driftwatch"

def get_xdg_config_home() -> Path:
    """Get the XDG_CONFIG_HOME path for the application."""
    return Path(platformdirs.user_config_dir(APP_NAME))

def get_xdg_state_home() -> Path:
    """Get the XDG_STATE_HOME path for the application."""
    return Path(platformdirs.user_state_dir(APP_NAME))

def get_default_config_path() -> Path:
    return get_xdg_config_home() / "config.yaml"

def get_default_status_path() -> Path:
    return get_xdg_state_home() / "status.yaml"

def get_lock_path() -> Path:
    return get_xdg_state_home() / "driftwatchd.lock"

def expand_path(path: str | Path) -> Path:
    """Expand environment variables and user home directory in a path."""
    return Path(os.path.expandvars(os.path.expanduser(str(path)))).resolve()
