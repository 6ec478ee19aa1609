# tests/unit/test_gitwrap.py: Unit tests for the Git wrapper.

import pytest
import subprocess

from driftwatch.gitwrap import git_ls_remote, parse_ls_remote, run_git
from driftwatch.util.errors import GitError

from conftest import COMMIT_A, COMMIT_B, ORIGIN_URL, TAG_OBJECT

LS_REMOTE_OUTPUT = f"""\
ref: refs/heads/main\tHEAD
{COMMIT_A}\tHEAD
{COMMIT_A}\trefs/heads/main
{COMMIT_B}\trefs/heads/feature
{TAG_OBJECT}\trefs/tags/v2.0
{COMMIT_B}\trefs/tags/v2.0^{{}}
"""

def test_run_git_success(monkeypatch):
    """Tests that run_git successfully executes a command."""
    def mock_run(*args, **kwargs):
        return subprocess.CompletedProcess(args=args, returncode=0, stdout="ok", stderr="")

    monkeypatch.setattr(subprocess, "run", mock_run)
    result = run_git(["ls-remote", ORIGIN_URL])
    assert result.stdout == "ok"

def test_run_git_disables_prompts(monkeypatch):
    """Tests that git never waits for credentials on a terminal."""
    captured = {}

    def mock_run(cmd, **kwargs):
        captured.update(kwargs, cmd=cmd)
        return subprocess.CompletedProcess(args=cmd, returncode=0, stdout="", stderr="")

    monkeypatch.setattr(subprocess, "run", mock_run)
    run_git(["ls-remote", ORIGIN_URL], timeout=7)
    assert captured["cmd"] == ["git", "ls-remote", ORIGIN_URL]
    assert captured["env"]["GIT_TERMINAL_PROMPT"] == "0"
    assert captured["timeout"] == 7
    assert captured["check"] is True
    assert "cwd" not in captured

def test_run_git_failure(monkeypatch):
    """Tests that run_git raises a GitError on a non-zero exit code."""
    def mock_run(*args, **kwargs):
        raise subprocess.CalledProcessError(128, args, stderr="fatal: repository not found")

    monkeypatch.setattr(subprocess, "run", mock_run)
    with pytest.raises(GitError, match="fatal: repository not found"):
        run_git(["ls-remote", ORIGIN_URL])

def test_run_git_timeout(monkeypatch):
    """Tests that run_git raises a GitError on a timeout."""
    def mock_run(*args, **kwargs):
        raise subprocess.TimeoutExpired(kwargs.get("args"), kwargs.get("timeout"))

    monkeypatch.setattr(subprocess, "run", mock_run)
    with pytest.raises(GitError, match="timed out after 5 seconds"):
        run_git(["ls-remote", ORIGIN_URL], timeout=5)

def test_run_git_missing_binary(monkeypatch):
    def mock_run(*args, **kwargs):
        raise FileNotFoundError("git")

    monkeypatch.setattr(subprocess, "run", mock_run)
    with pytest.raises(GitError, match="was not found"):
        run_git(["version"])

def test_parse_ls_remote():
    """Tests symbolic, direct and peeled lines, in order of first appearance."""
    refs = parse_ls_remote(LS_REMOTE_OUTPUT)

    assert [r.name for r in refs] == ["HEAD", "refs/heads/main", "refs/heads/feature", "refs/tags/v2.0"]
    head = refs[0]
    assert head.is_symbolic
    assert head.target == "refs/heads/main"
    assert head.hash == COMMIT_A
    tag = refs[3]
    assert tag.hash == TAG_OBJECT
    assert tag.peeled == COMMIT_B

def test_parse_ls_remote_ignores_noise():
    assert parse_ls_remote("\n\nwarning: redirecting to https://example.com\n") == []

def test_git_ls_remote(monkeypatch):
    """Tests the high-level git_ls_remote function."""
    def mock_run(cmd, **kwargs):
        assert cmd == ["git", "ls-remote", "--symref", ORIGIN_URL]
        return subprocess.CompletedProcess(args=cmd, returncode=0, stdout=LS_REMOTE_OUTPUT, stderr="")

    monkeypatch.setattr(subprocess, "run", mock_run)
    refs = git_ls_remote(ORIGIN_URL)
    assert refs[1].name == "refs/heads/main"
    assert refs[1].hash == COMMIT_A
