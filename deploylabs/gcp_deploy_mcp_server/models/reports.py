"""
Models for cost estimates, security reports and generated files.
"""

from enum import Enum
from typing import Dict, List

from pydantic import BaseModel, ConfigDict, Field


class Severity(str, Enum):
    """Severity of a security finding, from most to least severe."""

    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    INFO = "info"

    @property
    def rank(self) -> int:
        """Higher rank means more severe."""
        return _SEVERITY_RANK[self]


_SEVERITY_RANK = {
    Severity.CRITICAL: 4,
    Severity.HIGH: 3,
    Severity.MEDIUM: 2,
    Severity.LOW: 1,
    Severity.INFO: 0,
}


class Issue(BaseModel):
    """A single security finding."""

    model_config = ConfigDict(frozen=True)

    severity: Severity = Field(description="Severity of the finding")
    code: str = Field(description="Stable identifier of the finding")
    message: str = Field(description="Human readable description")
    recommendation: str = Field(default="", description="Suggested remediation")


class SecurityReport(BaseModel):
    """Result of checking a deployment configuration."""

    passed: List[Issue] = Field(default_factory=list, description="Low and info findings")
    warnings: List[Issue] = Field(default_factory=list, description="Medium findings")
    errors: List[Issue] = Field(default_factory=list, description="Critical and high findings")
    score: int = Field(ge=0, le=100, description="Security score from 0 to 100")


class CostBreakdown(BaseModel):
    """Estimated monthly cost, per service."""

    cloud_run: float = Field(ge=0, description="Cloud Run cost")
    cloud_sql: float = Field(ge=0, description="Cloud SQL cost")
    cloud_armor: float = Field(ge=0, description="Cloud Armor cost")
    cdn: float = Field(ge=0, description="Cloud CDN cost")
    secret_manager: float = Field(ge=0, description="Secret Manager cost")
    total: float = Field(ge=0, description="Sum of all components")
    currency: str = Field(default="USD", description="Currency of all amounts")

    def components(self) -> Dict[str, float]:
        """Returns the five cost components keyed by service."""
        return {
            "cloud_run": self.cloud_run,
            "cloud_sql": self.cloud_sql,
            "cloud_armor": self.cloud_armor,
            "cdn": self.cdn,
            "secret_manager": self.secret_manager,
        }


ARTIFACT_PATHS = {
    "dockerfile": "Dockerfile",
    "terraform_main": "terraform/main.tf",
    "terraform_variables": "terraform/variables.tf",
    "terraform_outputs": "terraform/outputs.tf",
    "cloudbuild": "cloudbuild.yaml",
}


class GeneratedArtifactSet(BaseModel):
    """The complete set of generated deployment files."""

    model_config = ConfigDict(frozen=True)

    dockerfile: str = Field(description="Container build file")
    terraform_main: str = Field(description="Primary Terraform file")
    terraform_variables: str = Field(description="Terraform variables file")
    terraform_outputs: str = Field(description="Terraform outputs file")
    cloudbuild: str = Field(description="Cloud Build pipeline file")

    def as_files(self) -> Dict[str, str]:
        """Maps relative file paths to their content."""
        return {path: getattr(self, key) for key, path in ARTIFACT_PATHS.items()}
