"""
Models for repository analysis.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class RepositoryReference(BaseModel):
    """Owner/repo pair parsed from a GitHub URL."""

    model_config = ConfigDict(frozen=True)

    owner: str = Field(description="Repository owner (user or organization)")
    repo: str = Field(description="Repository name without the .git suffix")


class ManifestFacts(BaseModel):
    """Facts extracted from a mix.exs manifest."""

    model_config = ConfigDict(frozen=True)

    name: Optional[str] = Field(default=None, description="OTP application name")

    elixir_version: Optional[str] = Field(
        default=None, description="Elixir version bound declared in the project"
    )

    phoenix_version: Optional[str] = Field(default=None, description="Phoenix dependency version")

    live_view_version: Optional[str] = Field(
        default=None, description="Phoenix LiveView dependency version"
    )

    has_ecto: bool = Field(default=False, description="Whether Ecto is a dependency")
    has_live_view: bool = Field(default=False, description="Whether LiveView is a dependency")
    has_oban: bool = Field(default=False, description="Whether Oban is a dependency")
    has_swoosh: bool = Field(default=False, description="Whether Swoosh is a dependency")
    has_gettext: bool = Field(default=False, description="Whether Gettext is a dependency")


class AnalysisResult(ManifestFacts):
    """Model for repository analysis results."""

    repo_url: str = Field(description="URL the analysis was requested for")

    default_branch: str = Field(default="main", description="Branch the manifest was read from")

    is_umbrella: bool = Field(
        default=False, description="Whether the project is an umbrella (multi-app) project"
    )
