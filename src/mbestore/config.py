"""Configuration management for mbestore projects."""

import os
from pathlib import Path
from typing import List, Optional, Dict, Any
import toml
from pydantic import BaseModel, Field, ConfigDict

from mbestore.utils.validators import DEFAULT_ID_PATTERN, DEFAULT_ID_LENGTH, IDRules


class IDSettings(BaseModel):
    """Identifier grammar settings."""

    pattern: str = Field(
        default=DEFAULT_ID_PATTERN, description="Regex a single ID segment must match"
    )
    length: int = Field(
        default=DEFAULT_ID_LENGTH, gt=0, description="Maximum characters per ID segment"
    )
    reserved: List[str] = Field(
        default_factory=list, description="Extra reserved keywords"
    )

    def rules(self) -> IDRules:
        return IDRules(self.pattern, self.length, self.reserved)


class BranchSettings(BaseModel):
    """Branch lifecycle settings."""

    root_branches: List[str] = Field(
        default_factory=lambda: ["master"],
        description="Branch IDs that can never be archived or deleted",
    )


class LoggingSettings(BaseModel):
    """Logging settings applied by the CLI and API entry points."""

    level: str = Field(default="INFO", description="Log level")
    format: Optional[str] = Field(default=None, description="Log record format")


class ProjectConfig(BaseModel):
    """Configuration for an mbestore project stored in .mbestore/config.toml."""

    model_config = ConfigDict(
        extra="allow"
    )  # Allow additional fields for extensibility

    active_org: Optional[str] = Field(default=None, description="Active organization")
    active_project: Optional[str] = Field(default=None, description="Active project")
    active_branch: str = Field(default="master", description="Active branch")
    active_user: str = Field(default="admin", description="User issuing CLI requests")
    store_file: str = Field(
        default="store.db", description="Document store file inside .mbestore"
    )
    ids: IDSettings = Field(default_factory=IDSettings)
    branches: BranchSettings = Field(default_factory=BranchSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


class Config:
    """Manages mbestore project configuration."""

    def __init__(self, project_dir: Optional[Path] = None):
        """Initialize config manager.

        Args:
            project_dir: Path to project directory. If None, uses MBESTORE_PROJECT_DIR env var or current directory.
        """
        # Check environment variable first
        if project_dir is None:
            env_dir = os.environ.get("MBESTORE_PROJECT_DIR")
            if env_dir:
                project_dir = Path(env_dir)

        self.project_dir = Path(project_dir) if project_dir else Path.cwd()
        self.config_dir = self.project_dir / ".mbestore"
        self.config_path = self.config_dir / "config.toml"
        self._config: Optional[ProjectConfig] = None

    @property
    def exists(self) -> bool:
        """Check if config file exists."""
        return self.config_path.exists()

    @property
    def store_path(self) -> Path:
        """Path to the document store file."""
        config = self._config or (self.load() if self.exists else ProjectConfig())
        return self.config_dir / config.store_file

    def load(self) -> ProjectConfig:
        """Load configuration from disk, with environment variable overrides."""
        if not self.exists:
            raise FileNotFoundError(f"Config file not found at {self.config_path}")

        with open(self.config_path, "r") as f:
            data = toml.load(f)

        self._apply_env_overrides(data)

        self._config = ProjectConfig(**data)
        return self._config

    def _apply_env_overrides(self, data: Dict[str, Any]) -> None:
        """Apply environment variable overrides to configuration data."""
        if env_org := os.environ.get("MBESTORE_ORG"):
            data["active_org"] = env_org

        if env_project := os.environ.get("MBESTORE_PROJECT"):
            data["active_project"] = env_project

        if env_branch := os.environ.get("MBESTORE_BRANCH"):
            data["active_branch"] = env_branch

        if env_user := os.environ.get("MBESTORE_USER"):
            data["active_user"] = env_user

        if env_level := os.environ.get("MBESTORE_LOG_LEVEL"):
            data.setdefault("logging", {})
            data["logging"]["level"] = env_level

    def save(self, config: Optional[ProjectConfig] = None) -> None:
        """Save configuration to disk.

        Args:
            config: Configuration to save. If None, saves current config.
        """
        if config:
            self._config = config

        if not self._config:
            raise ValueError("No configuration to save")

        self.config_dir.mkdir(parents=True, exist_ok=True)

        # toml cannot represent None, drop unset values
        config_dict = self._config.model_dump(exclude_none=True)

        with open(self.config_path, "w") as f:
            toml.dump(config_dict, f)

    def init_project(
        self, org_id: str, project_id: str, username: str = "admin"
    ) -> ProjectConfig:
        """Initialize a new mbestore project with default configuration.

        Delegates to the ProjectInitializer for the actual initialization.
        """
        from mbestore.core.initializer import ProjectInitializer

        initializer = ProjectInitializer(self.project_dir)
        config = initializer.init_project(org_id, project_id, username)

        self._config = config
        return config
