# Task board: configuration
# Override paths and server settings via taskboard.yaml, environment or CLI args.

import os
import logging
import yaml
from pathlib import Path
from dataclasses import dataclass, field
from typing import Dict, Optional

logger = logging.getLogger(__name__)

CONFIG_PATH = Path("taskboard.yaml")

DEFAULT_COLUMNS = {
    "todo": "To Do",
    "in-progress": "In Progress",
    "done": "Done",
}


@dataclass
class Config:
    """Runtime configuration for the task board."""

    # Storage
    backend: str = "sqlite"            # "sqlite" or "memory"
    db_path: str = "~/.local/share/taskboard/taskboard.db"
    storage_key: str = "kanbanTasks"

    # Server
    host: str = "127.0.0.1"
    port: int = 3000
    api_secret_env: str = "TASKBOARD_API_SECRET"
    log_level: str = "INFO"

    # Column key -> header shown by the view
    columns: Dict[str, str] = field(default_factory=lambda: dict(DEFAULT_COLUMNS))

    @property
    def api_secret(self) -> str:
        return os.environ.get(self.api_secret_env, "")

    def resolve_paths(self):
        """Apply environment overrides and expand ~."""
        env_db = os.environ.get("TASKBOARD_DB")
        if env_db:
            self.db_path = env_db
        self.db_path = str(Path(self.db_path).expanduser())
        # Keep every board column present even if the file lists only some
        if not isinstance(self.columns, dict):
            logger.warning(f"Ignoring non-mapping columns setting: {self.columns!r}")
            self.columns = {}
        self.columns = {**DEFAULT_COLUMNS, **{k: v for k, v in self.columns.items() if k in DEFAULT_COLUMNS}}

    @classmethod
    def load(cls, path: Optional[str] = None) -> "Config":
        """Load config from YAML file, falling back to defaults."""
        cfg_path = Path(path) if path else CONFIG_PATH
        if cfg_path.exists():
            try:
                with open(cfg_path, "r") as f:
                    data = yaml.safe_load(f) or {}
                cfg = cls(**{k: v for k, v in data.items() if k in cls.__dataclass_fields__})
            except (OSError, yaml.YAMLError, TypeError, AttributeError) as e:
                logger.warning(f"Ignoring unreadable config {cfg_path}: {e}")
                cfg = cls()
        else:
            cfg = cls()
        cfg.resolve_paths()
        return cfg
