# tests/unit/test_config.py: Unit tests for configuration loading and validation.

import pytest
from pathlib import Path
from pydantic import ValidationError

from driftwatch.config import DEFAULT_POLL_INTERVAL, GitConfig, load_config
from driftwatch.util.errors import ConfigError

from conftest import ORIGIN_URL, TARGET_URL

VALID_CONFIG_YAML = f"""
version: 1
store: file
status_file: "${{DRIFTWATCH_TEST_STATE}}/status.yaml"
defaults:
  poll_interval_sec: 300
  git_timeout_sec: 30
logging:
  level: DEBUG
  json: false
patterns:
  - name: mcg
    namespace: patterns
    gitConfig:
      originRepo: "{ORIGIN_URL}"
      targetRepo: "{TARGET_URL}"
      originRevision: main
  - name: edge
    gitConfig:
      originRepo: "{ORIGIN_URL}"
      targetRepo: "{TARGET_URL}"
      pollInterval: 0
"""

@pytest.fixture
def mock_config_dir(tmp_path: Path, monkeypatch) -> Path:
    """Creates a mock XDG config directory structure and sets the environment variable."""
    # platformdirs will add 'driftwatch' to this path
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))
    config_dir = tmp_path / "driftwatch"
    config_dir.mkdir()
    return config_dir

def test_load_valid_config(mock_config_dir: Path, tmp_path: Path, monkeypatch):
    """Tests that a valid configuration file is loaded from the XDG location."""
    monkeypatch.setenv("DRIFTWATCH_TEST_STATE", str(tmp_path / "state"))
    (mock_config_dir / "config.yaml").write_text(VALID_CONFIG_YAML)

    config = load_config()

    assert config.version == 1
    assert config.store == "file"
    assert config.status_file == (tmp_path / "state" / "status.yaml").resolve()
    assert config.defaults.git_timeout_sec == 30
    assert config.logging.level == "DEBUG"
    assert config.logging.json_format is False
    assert [p.key for p in config.patterns] == ["patterns/mcg", "default/edge"]
    assert config.patterns[0].git_config.origin_repo == ORIGIN_URL
    assert config.patterns[0].git_config.origin_revision == "main"

def test_pattern_intervals(mock_config_dir: Path, monkeypatch, tmp_path: Path):
    """Tests that an absent pollInterval inherits the default and 0 is kept as is."""
    monkeypatch.setenv("DRIFTWATCH_TEST_STATE", str(tmp_path))
    (mock_config_dir / "config.yaml").write_text(VALID_CONFIG_YAML)

    mcg, edge = load_config().patterns
    assert mcg.git_config.poll_interval == 300
    assert edge.git_config.poll_interval == 0
    assert edge.git_config.watchable

def test_load_config_not_found(tmp_path: Path, monkeypatch):
    """Tests that a ConfigError is raised if the config file doesn't exist."""
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))
    with pytest.raises(ConfigError, match="Configuration file not found"):
        load_config()

def test_load_config_invalid_yaml(tmp_path: Path):
    config_path = tmp_path / "invalid.yaml"
    config_path.write_text("key: value: another")
    with pytest.raises(ConfigError, match="Error parsing YAML"):
        load_config(config_path)

def test_config_validation_error(tmp_path: Path):
    """Tests that a ConfigError is raised on an invalid configuration."""
    config_path = tmp_path / "config.yaml"
    config_path.write_text("version: 1\nstore: etcd\n")
    with pytest.raises(ConfigError, match="Configuration validation failed"):
        load_config(config_path)

def test_default_values_are_applied(tmp_path: Path):
    config_path = tmp_path / "config.yaml"
    config_path.write_text("version: 1\n")

    config = load_config(config_path)

    assert config.store == "file"
    assert config.status_file is None
    assert config.defaults.poll_interval_sec == DEFAULT_POLL_INTERVAL
    assert config.kubernetes.plural == "patterns"
    assert config.kubernetes.namespace is None
    assert config.logging.json_format is True
    assert config.patterns == []

def test_git_config_from_resource_spec():
    """Tests that the camelCase resource fields map onto GitConfig."""
    git = GitConfig.model_validate({
        "originRepo": ORIGIN_URL,
        "targetRepo": TARGET_URL,
        "targetRevision": "deployed",
        "hostname": "ignored",
    })
    assert git.target_revision == "deployed"
    assert git.poll_interval == DEFAULT_POLL_INTERVAL
    assert git.watchable

@pytest.mark.parametrize("git", [
    {"originRepo": ORIGIN_URL},
    {"targetRepo": TARGET_URL},
    {"originRepo": ORIGIN_URL, "targetRepo": TARGET_URL, "pollInterval": -1},
])
def test_git_config_not_watchable(git):
    assert GitConfig.model_validate(git).watchable is False

def test_git_config_rejects_non_integer_interval():
    with pytest.raises(ValidationError):
        GitConfig.model_validate({"pollInterval": "often"})

def test_repository_urls_expand_variables_without_becoming_paths(tmp_path: Path, monkeypatch):
    """Tests that a URL built from environment variables stays a URL."""
    monkeypatch.setenv("GITEA_HOST", "gitea.example.com")
    config_path = tmp_path / "config.yaml"
    config_path.write_text(f"""
version: 1
patterns:
  - name: mcg
    gitConfig:
      originRepo: "https://${{GITEA_HOST}}/org/repo.git"
      targetRepo: "{TARGET_URL}"
      targetRevision: "~stable"
""")

    git = load_config(config_path).patterns[0].git_config
    assert git.origin_repo == "https://gitea.example.com/org/repo.git"
    assert git.target_repo == TARGET_URL
    assert git.target_revision == "~stable"

def test_status_file_home_is_expanded(tmp_path: Path, monkeypatch):
    monkeypatch.setenv("HOME", str(tmp_path))
    config_path = tmp_path / "config.yaml"
    config_path.write_text('version: 1\nstatus_file: "~/state/status.yaml"\n')

    config = load_config(config_path)
    assert config.status_file == (tmp_path / "state" / "status.yaml").resolve()
