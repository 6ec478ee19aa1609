# src/driftwatch/util/errors.py: Typed exceptions and exit codes.
# Every failure the watcher can hit maps onto one of these types so callers
# can tell a broken pattern configuration from an unreachable remote or an
# unresolvable revision, and so the CLI can turn them into exit codes.

class DriftwatchError(Exception):
    """Base exception for the application."""
    exit_code = 1

class ConfigError(DriftwatchError):
    """Configuration-related errors, including patterns missing a repository URL."""
    exit_code = 2

class GitError(DriftwatchError):
    """Git command and transport errors."""
    exit_code = 3

class ResolutionError(DriftwatchError):
    """A revision selector or reference could not be resolved to a commit."""
    exit_code = 4

class WatcherError(DriftwatchError):
    """Invalid scheduler state or an unknown repository pair."""
    exit_code = 5

class StoreError(DriftwatchError):
    """Reading or persisting pattern state failed."""
    exit_code = 6

class PatternNotFoundError(StoreError):
    """The requested pattern does not exist in the store."""
    exit_code = 7

class ConflictError(StoreError):
    """A status write lost an optimistic-concurrency race and must be re-read."""
