# src/driftwatch/daemon.py: The main daemon process (driftwatchd).
# This module wires the pattern store, the git remote client, the drift
# detector and the scheduler together. It keeps the scheduler's watch set in
# line with the patterns in the store, re-reading them periodically, and uses
# a cross-process lock so that only one daemon reports conditions at a time.

import threading
from pathlib import Path
from typing import Optional

from filelock import FileLock, Timeout

from .conditions import ConditionReporter
from .config import Config, Pattern, load_config
from .drift import DriftDetector
from .remote.gitcli import git_remote_factory
from .store import PatternStore
from .util.errors import DriftwatchError
from .util.log import get_logger, pattern_context, setup_logging
from .util.paths import get_lock_path
from .watcher import DriftWatcher

logger = get_logger(__name__)

def sync_watch(watcher: DriftWatcher, pattern: Pattern) -> None:
    """
    Bring the watcher in line with one pattern's git configuration.

    Watchable patterns are added, or have their interval updated when already
    watched; patterns that no longer qualify are removed.
    """
    git_config = pattern.git_config
    name, namespace = pattern.name, pattern.namespace
    if git_config.watchable:
        if not watcher.is_watching(name, namespace):
            watcher.add(name, namespace, git_config.poll_interval)
        else:
            watcher.update_interval(name, namespace, git_config.poll_interval)
    elif watcher.is_watching(name, namespace):
        watcher.remove(name, namespace)

def sync_all(watcher: DriftWatcher, store: PatternStore) -> None:
    """Apply sync_watch to every pattern and drop pairs whose pattern is gone."""
    patterns = store.list_patterns()
    for pattern in patterns:
        token = pattern_context.set(pattern.key)
        try:
            sync_watch(watcher, pattern)
        except DriftwatchError as e:
            logger.error(f"Failed to sync watch state: {e}")
        finally:
            pattern_context.reset(token)

    present = {(p.name, p.namespace) for p in patterns}
    for pair in watcher.pairs():
        if pair.key not in present:
            try:
                watcher.remove(pair.name, pair.namespace)
            except DriftwatchError as e:
                logger.error(f"Failed to stop watching pattern {pair.namespace}/{pair.name}: {e}")

def build_store(config: Config, config_path: Optional[Path] = None) -> PatternStore:
    """Create the pattern store selected in the configuration."""
    if config.store == "kubernetes":
        from .store.kube import KubernetesPatternStore
        return KubernetesPatternStore(config.kubernetes)
    from .store.file import FilePatternStore
    return FilePatternStore(config_path, config.status_file)

def build_watcher(config: Config, store: PatternStore) -> DriftWatcher:
    detector = DriftDetector(store, git_remote_factory(config.defaults.git_timeout_sec))
    return DriftWatcher(detector, ConditionReporter(store))

def run(config_path: Optional[Path] = None, stop_event: Optional[threading.Event] = None) -> None:
    """
    Run the scheduler until stop_event is set (or forever).

    The pattern store is re-read every 'resync_interval_sec'; configuration
    changes to the store backend itself need a restart.
    """
    config = load_config(config_path)
    setup_logging(config.logging.level, config.logging.json_format)
    store = build_store(config, config_path)
    watcher = build_watcher(config, store)
    stop_event = stop_event or threading.Event()

    with watcher.watch():
        while not stop_event.is_set():
            try:
                sync_all(watcher, store)
            except DriftwatchError as e:
                logger.error(f"Failed to load patterns: {e}")
            stop_event.wait(config.defaults.resync_interval_sec)

def main(config_path: Optional[Path] = None):
    """
    Main entry point for the daemon.

    It acquires a process lock and then runs the scheduler until interrupted.
    """
    lock_path = get_lock_path()
    lock_path.parent.mkdir(parents=True, exist_ok=True)
    lock = FileLock(lock_path)

    try:
        with lock.acquire(timeout=1):
            logger.info("Daemon started and lock acquired.")
            run(config_path)
    except Timeout:
        logger.error("Another instance of the daemon is already running. Exiting.")
        raise SystemExit(1)
    except DriftwatchError as e:
        logger.error(f"Daemon failed: {e}")
        raise SystemExit(e.exit_code)
    except KeyboardInterrupt:
        logger.info("Daemon shutting down.")

if __name__ == "__main__":
    main()
