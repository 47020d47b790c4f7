"""
SLA External Integrations
==========================

- YAML SLA policy file, reloaded by a watchdog observer when it changes
"""

import threading
from pathlib import Path
from typing import Optional

import yaml
from pydantic import ValidationError
from watchdog.events import FileSystemEventHandler
from watchdog.observers import Observer

from deskclock.core import ConfigurationException
from deskclock.sla.application import ISLAPolicyProvider
from deskclock.sla.domain import SLAPolicy
from deskclock.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)


class PolicyFileHandler(FileSystemEventHandler):
    """Watchdog event handler for SLA policy file changes."""

    def __init__(self, policy_manager: "SLAPolicyManager", policy_path: Path):
        self.policy_manager = policy_manager
        self.policy_path = policy_path
        super().__init__()

    def _matches(self, path: str) -> bool:
        return Path(path).resolve() == self.policy_path.resolve()

    def on_modified(self, event):
        if not event.is_directory and self._matches(event.src_path):
            logger.info("SLA policy file changed", extra={"path": event.src_path})
            self.policy_manager.reload()

    def on_created(self, event):
        self.on_modified(event)

    def on_moved(self, event):
        # Editors that save through a temp file end with a move onto the path
        if not event.is_directory and self._matches(event.dest_path):
            logger.info("SLA policy file replaced", extra={"path": event.dest_path})
            self.policy_manager.reload()


class SLAPolicyManager(ISLAPolicyProvider):
    """
    Thread-safe SLA policy holder with hot-reload support.

    A policy file that fails to parse or validate on reload is logged and
    ignored; the previous policy stays in effect.
    """

    def __init__(self):
        self._policy: Optional[SLAPolicy] = None
        self._lock = threading.Lock()
        self._path: Optional[Path] = None
        self._observer = None

    def load(self, path: Path) -> SLAPolicy:
        """
        Initial policy load.

        Raises:
            ConfigurationException: if the file exists but is invalid
        """
        self._path = Path(path)
        policy = self._load_from_file(self._path)
        with self._lock:
            self._policy = policy
        return policy

    def _load_from_file(self, path: Path) -> SLAPolicy:
        """Load and parse the YAML policy file."""
        if not path.exists():
            logger.warning("SLA policy file not found, using defaults", extra={"path": str(path)})
            return SLAPolicy()

        try:
            with open(path, "r") as f:
                data = yaml.safe_load(f) or {}
            return SLAPolicy(**data)
        except (yaml.YAMLError, ValidationError, TypeError) as e:
            raise ConfigurationException(
                f"Invalid SLA policy file {path}: {e}",
                {"path": str(path)}
            )

    def reload(self) -> bool:
        """Reload the policy from file, keeping the current one on failure."""
        if self._path is None:
            return False

        try:
            new_policy = self._load_from_file(self._path)
        except ConfigurationException as e:
            logger.error("Failed to reload SLA policy", extra={"error": e.message})
            return False

        with self._lock:
            self._policy = new_policy
        logger.info(
            "SLA policy reloaded",
            extra={"warning_threshold_percent": new_policy.warning_threshold_percent}
        )
        return True

    def start_watching(self) -> None:
        """
        Start watching the policy file's directory for changes.

        Skips watching when the directory does not exist or the platform
        cannot provide file notifications.
        """
        if self._path is None:
            raise RuntimeError("Policy not loaded. Call load() first.")

        directory = self._path.resolve().parent
        if not directory.exists():
            logger.info("Policy directory missing, not watching", extra={"path": str(directory)})
            return

        try:
            self._observer = Observer()
            self._observer.schedule(
                PolicyFileHandler(self, self._path),
                str(directory),
                recursive=False
            )
            self._observer.start()
            logger.info("Watching SLA policy file", extra={"path": str(self._path)})
        except OSError as e:
            logger.warning("File watching not available, using static policy", extra={"error": str(e)})
            self._observer = None

    def stop_watching(self) -> None:
        """Stop watching the policy file (safe to call even if not watching)."""
        if self._observer is not None:
            self._observer.stop()
            self._observer.join(timeout=5)
            self._observer = None

    def get_policy(self) -> SLAPolicy:
        """Get current policy."""
        with self._lock:
            if self._policy is None:
                raise RuntimeError("SLA policy not loaded")
            return self._policy
