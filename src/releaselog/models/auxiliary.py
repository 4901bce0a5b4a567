"""Models for the auxiliary feeds shown next to the commit list."""

from typing import List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class FeatureAnnouncement(BaseModel):
    """A feature announcement keyed by a version string or a ref."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    title: str = Field("", description="Feature title")
    description: str = Field("", description="Feature description")
    version: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("version", "discourse_version"),
        description="Semantic version, or a ref (tag, branch, commit hash)",
    )


class SecurityAdvisory(BaseModel):
    """A published security advisory with the versions that fix it."""

    model_config = ConfigDict(extra="ignore")

    ghsa_id: str = Field(..., description="Advisory identifier")
    cve_id: Optional[str] = Field(None, description="CVE identifier, if assigned")
    severity: str = Field("unknown", description="Severity: low, medium, high, critical")
    summary: str = Field("", description="One-line summary")
    published_at: Optional[str] = Field(None, description="Publication timestamp")
    html_url: Optional[str] = Field(None, description="Advisory page URL")
    patched_versions: List[str] = Field(default_factory=list, description="Versions that contain the fix")
