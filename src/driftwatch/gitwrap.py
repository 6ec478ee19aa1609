# src/driftwatch/gitwrap.py: Safe subprocess wrappers for Git.
# This module runs the system's 'git' binary with a timeout, with interactive
# prompts disabled, and with failures mapped onto GitError. The drift watcher
# only ever talks to remotes, so the one high-level operation here is listing
# a remote's references without cloning it.

import os
import subprocess
from typing import List

from .refs import Reference
from .util.errors import GitError

PEELED_SUFFIX = "^{}"
SYMREF_PREFIX = "ref: "

# --- Core Git Execution ---

def run_git(args: List[str], timeout: int = 120) -> subprocess.CompletedProcess:
    """
    Runs a git command with a timeout and error handling.

    Args:
        args: A list of arguments for the git command.
        timeout: The command timeout in seconds.

    Returns:
        The CompletedProcess object.

    Raises:
        GitError: If git is not found, the command fails, or it times out.
    """
    base_env = os.environ.copy()
    base_env["GIT_TERMINAL_PROMPT"] = "0"

    try:
        process = subprocess.run(
            ["git"] + args,
            capture_output=True,
            text=True,
            timeout=timeout,
            check=True,
            env=base_env,
        )
        return process
    except FileNotFoundError:
        raise GitError("The 'git' command was not found. Is it installed and in your PATH?")
    except subprocess.CalledProcessError as e:
        error_message = (e.stderr or "").strip() or (e.stdout or "").strip()
        raise GitError(f"Git command '{' '.join(args)}' failed: {error_message}")
    except subprocess.TimeoutExpired:
        raise GitError(f"Git command '{' '.join(args)}' timed out after {timeout} seconds.")

# --- Remote References ---

def parse_ls_remote(output: str) -> List[Reference]:
    """
    Parse 'git ls-remote --symref' output into references.

    'ref: <target>\\t<name>' lines make <name> symbolic, '<hash>\\t<name>' lines
    give it a hash, and '<name>^{}' lines record the commit an annotated tag
    peels to. Order of first appearance is preserved.
    """
    refs: dict = {}
    peeled: dict = {}
    for line in output.splitlines():
        line = line.strip()
        if not line or "\t" not in line:
            continue
        value, name = line.split("\t", 1)
        if value.startswith(SYMREF_PREFIX):
            ref = refs.setdefault(name, Reference(name=name))
            ref.target = value[len(SYMREF_PREFIX):].strip()
        elif name.endswith(PEELED_SUFFIX):
            peeled[name[:-len(PEELED_SUFFIX)]] = value
        else:
            ref = refs.setdefault(name, Reference(name=name))
            ref.hash = value

    for name, commit in peeled.items():
        if name in refs:
            refs[name].peeled = commit
    return list(refs.values())

def git_ls_remote(url: str, timeout: int = 120) -> List[Reference]:
    """Lists the references advertised by a remote, including its symbolic HEAD."""
    result = run_git(["ls-remote", "--symref", url], timeout=timeout)
    return parse_ls_remote(result.stdout)
