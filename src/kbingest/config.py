"""Configuration for merges, archive limits and KB markers."""

from __future__ import annotations

import os
from copy import deepcopy
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from kbingest.archive import ZipValidationLimits
from kbingest.behavior import Behavior, coerce_behavior
from kbingest.exceptions import ConfigError
from kbingest.layout import KBMarkers
from kbingest.path_ops import SyncOptions

ENV_PREFIX = "KBINGEST_"
CONFIG_FILE = Path(".kbingest") / "config.yml"


class SyncSettings(BaseModel):
    """Conflict policy applied when merging trees."""

    default_behavior: Behavior = Field(default=Behavior.OVERWRITE, description="Behavior when no folder key matches")
    folder_behavior: dict[str, Behavior] = Field(
        default_factory=dict, description="Relative folder keys mapped to overwrite/add/skip"
    )

    @field_validator("default_behavior", mode="before")
    @classmethod
    def _coerce_default(cls, value: Any) -> Behavior:
        return coerce_behavior(value)

    @field_validator("folder_behavior", mode="before")
    @classmethod
    def _coerce_map(cls, value: Any) -> dict[str, Behavior]:
        if value is None:
            return {}
        if not isinstance(value, dict):
            msg = f"folder_behavior must be a mapping, got {type(value).__name__}"
            raise ValueError(msg)
        return {str(k): coerce_behavior(v) for k, v in value.items()}

    def to_options(self) -> SyncOptions:
        return SyncOptions(default_behavior=self.default_behavior, folder_behavior=dict(self.folder_behavior))


class ArchiveSettings(BaseModel):
    """Safety limits for archive extraction."""

    max_total_size: int = Field(default=500 * 1024 * 1024, gt=0)
    max_member_size: int = Field(default=50 * 1024 * 1024, gt=0)
    max_member_count: int = Field(default=20000, gt=0)
    max_compression_ratio: float = Field(default=100.0, gt=0)

    def to_limits(self) -> ZipValidationLimits:
        return ZipValidationLimits(
            max_total_size=self.max_total_size,
            max_member_size=self.max_member_size,
            max_member_count=self.max_member_count,
            max_compression_ratio=self.max_compression_ratio,
        )


class LayoutSettings(BaseModel):
    """Names used to recognize a knowledge base."""

    config_dir: str = ".pair"
    root_manifest: str = "AGENTS.md"
    manifest_file: str = "manifest.json"
    staging_dir: str = ".zip-temp"

    def to_markers(self) -> KBMarkers:
        return KBMarkers(
            config_dir=self.config_dir,
            root_manifest=self.root_manifest,
            manifest_file=self.manifest_file,
            staging_dir=self.staging_dir,
        )


class KBIngestConfig(BaseSettings):
    """Root configuration.

    Supports environment variable overrides with the pattern
    KBINGEST_SECTION__KEY (e.g., KBINGEST_SYNC__DEFAULT_BEHAVIOR).
    """

    sync: SyncSettings = Field(default_factory=SyncSettings)
    archive: ArchiveSettings = Field(default_factory=ArchiveSettings)
    layout: LayoutSettings = Field(default_factory=LayoutSettings)

    model_config = SettingsConfigDict(
        extra="ignore",
        env_prefix=ENV_PREFIX,
        env_nested_delimiter="__",
    )


class ConfigLoader:
    """Loads configuration from ``.kbingest/config.yml`` with env precedence.

    Priority (highest to lowest):
    1. Environment variables (KBINGEST_SECTION__KEY)
    2. Config file (.kbingest/config.yml relative to root)
    3. Defaults
    """

    def __init__(self, root: Path | None = None):
        self.root = root if root is not None else Path.cwd()

    @property
    def config_path(self) -> Path:
        return self.root / CONFIG_FILE

    def load(self) -> KBIngestConfig:
        try:
            merged = self._merge_config(
                base=KBIngestConfig().model_dump(mode="json"),
                override=self._load_from_file(),
                env_override_paths=self._collect_env_override_paths(),
            )
            return KBIngestConfig.model_validate(merged)
        except ValidationError as err:
            msg = f"Invalid configuration: {err}"
            raise ConfigError(msg) from err

    def _collect_env_override_paths(self) -> set[tuple[str, ...]]:
        """Return the set of config paths defined via environment variables."""
        env_paths: set[tuple[str, ...]] = set()
        for key in os.environ:
            if not key.startswith(ENV_PREFIX):
                continue
            parts = [part.lower() for part in key[len(ENV_PREFIX) :].split("__") if part]
            if parts:
                env_paths.add(tuple(parts))
        return env_paths

    def _merge_config(
        self,
        base: dict[str, Any],
        override: dict[str, Any],
        env_override_paths: set[tuple[str, ...]],
        current_path: tuple[str, ...] = (),
    ) -> dict[str, Any]:
        """Merge override into base, skipping keys provided via env vars."""
        merged = deepcopy(base)

        for key, value in override.items():
            path = (*current_path, str(key).lower())
            if path in env_override_paths:
                continue

            if isinstance(value, dict) and isinstance(merged.get(key), dict):
                merged[key] = self._merge_config(merged[key], value, env_override_paths, path)
            else:
                merged[key] = value

        return merged

    def _load_from_file(self) -> dict[str, Any]:
        if not self.config_path.exists():
            return {}

        try:
            with self.config_path.open(encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            msg = f"Invalid YAML in {self.config_path}: {e}"
            raise ConfigError(msg) from e

        if not isinstance(data, dict):
            msg = f"Configuration root must be a mapping (dictionary), got {type(data).__name__}"
            raise ConfigError(msg)
        return data


def load_config(root: Path | None = None) -> KBIngestConfig:
    return ConfigLoader(root).load()
