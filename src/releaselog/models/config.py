"""Configuration models."""

from pathlib import Path
from typing import List, Literal, Optional

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class IngestionConfig(BaseModel):
    """Configuration for one ingestion run."""

    origin: str = Field(..., description="URL or path of the upstream repository")
    mirror_dir: Path = Field(..., description="Local bare mirror used for git operations")
    base_tag: str = Field(..., description="Lower bound of retained history")
    fixed_branches: List[str] = Field(
        default_factory=lambda: ["main", "stable", "latest"],
        description="Branches always included, in listing order",
    )
    release_branch_pattern: str = Field("release/*", description="Glob for release-line branches")
    tag_pattern: str = Field("v*", description="Glob for version tags")
    development_branch: str = Field("latest", description="Branch carrying unreleased work")
    output_path: Path = Field(Path("data/commits.json"), description="Snapshot document path")
    version_support_path: Optional[Path] = Field(
        Path("data/version-support.json"),
        description="Where to copy the versions manifest, if one is read",
    )
    manifest_ref: Optional[str] = Field("main", description="Branch holding the versions manifest")
    manifest_path: Optional[str] = Field("versions.json", description="Manifest path inside the repository")
    version_strategy: Literal["bfs", "describe"] = Field("bfs", description="How version labels are computed")
    describe_workers: int = Field(100, description="Concurrent describe calls")
    describe_batch_size: int = Field(1000, description="Commits per fully-joined describe batch")

    class Config:
        """Pydantic config."""
        json_schema_extra = {
            "example": {
                "origin": "https://github.com/discourse/discourse",
                "mirror_dir": "tmp/discourse-repo",
                "base_tag": "v3.4.0",
                "fixed_branches": ["main", "stable", "latest"],
                "release_branch_pattern": "release/*",
                "tag_pattern": "v*",
            }
        }


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="RELEASELOG_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Upstream history
    origin: str = "https://github.com/discourse/discourse"
    mirror_dir: str = "./tmp/repo"
    base_tag: str = "v3.4.0"
    fixed_branches: List[str] = ["main", "stable", "latest"]
    release_branch_pattern: str = "release/*"
    tag_pattern: str = "v*"
    development_branch: str = "latest"
    manifest_ref: Optional[str] = "main"
    manifest_path: Optional[str] = "versions.json"

    # Output
    data_dir: str = "./data"
    snapshot_filename: str = "commits.json"
    version_support_filename: str = "version-support.json"
    features_filename: str = "new-features.json"
    advisories_filename: str = "security-advisories.json"

    # Version assignment
    version_strategy: Literal["bfs", "describe"] = "bfs"
    describe_workers: int = 100
    describe_batch_size: int = 1000

    # Auxiliary feeds
    features_url: str = "https://meta.discourse.org/new-features.json"
    advisories_owner: str = "discourse"
    advisories_repo: str = "discourse"
    github_token: Optional[str] = None
    http_timeout: float = 30.0

    # Logging
    log_level: str = "INFO"
    log_format: Literal["console", "json"] = "console"

    @property
    def snapshot_path(self) -> Path:
        return Path(self.data_dir) / self.snapshot_filename

    @property
    def features_path(self) -> Path:
        return Path(self.data_dir) / self.features_filename

    @property
    def advisories_path(self) -> Path:
        return Path(self.data_dir) / self.advisories_filename

    def to_ingestion_config(self) -> IngestionConfig:
        """Build the ingestion configuration from these settings."""
        return IngestionConfig(
            origin=self.origin,
            mirror_dir=Path(self.mirror_dir),
            base_tag=self.base_tag,
            fixed_branches=list(self.fixed_branches),
            release_branch_pattern=self.release_branch_pattern,
            tag_pattern=self.tag_pattern,
            development_branch=self.development_branch,
            output_path=self.snapshot_path,
            version_support_path=Path(self.data_dir) / self.version_support_filename,
            manifest_ref=self.manifest_ref,
            manifest_path=self.manifest_path,
            version_strategy=self.version_strategy,
            describe_workers=self.describe_workers,
            describe_batch_size=self.describe_batch_size,
        )
