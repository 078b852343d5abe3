"""
Models for deployment configuration.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator


class Environment(str, Enum):
    """Deployment environment tier."""

    PRODUCTION = "production"
    STAGING = "staging"
    DEVELOPMENT = "development"


BOOLEAN_FIELDS = ("use_vpc", "enable_cdn", "enable_secret_manager", "enable_armor")

INTEGER_FIELDS = ("db_disk_size_gb", "min_instances", "max_instances", "memory_mb", "cpu_count")


class DeploymentConfiguration(BaseModel):
    """Working draft of the settings used to generate a Cloud Run deployment."""

    model_config = ConfigDict(validate_assignment=True, use_enum_values=False)

    app_name: str = Field(default="myapp", description="Application name used for resource names")

    environment: Environment = Field(
        default=Environment.PRODUCTION, description="Deployment environment tier"
    )

    # Platform
    gcp_project_id: str = Field(default="", description="GCP project ID")
    gcp_region: str = Field(default="us-central1", description="GCP region")
    gcp_zone: str = Field(default="us-central1-a", description="GCP zone")

    # Cloud SQL
    db_tier: str = Field(default="db-f1-micro", description="Cloud SQL machine tier")
    db_version: str = Field(default="POSTGRES_15", description="Cloud SQL database version")
    db_disk_size_gb: int = Field(default=10, gt=0, description="Cloud SQL disk size in GB")

    # Cloud Run
    min_instances: int = Field(default=1, ge=0, description="Minimum number of instances")
    max_instances: int = Field(default=10, gt=0, description="Maximum number of instances")
    memory_mb: int = Field(default=512, ge=256, description="Memory per instance in MB")
    cpu_count: int = Field(default=1, gt=0, description="vCPUs per instance")

    # Networking and security
    use_vpc: bool = Field(default=True, description="Use a private VPC network")
    enable_cdn: bool = Field(default=False, description="Enable Cloud CDN")
    enable_armor: bool = Field(default=False, description="Enable Cloud Armor WAF")
    enable_secret_manager: bool = Field(default=True, description="Store secrets in Secret Manager")
    ssl_policy: str = Field(default="modern", description="SSL policy (modern, compatible, restricted)")
    domain_name: str = Field(default="", description="Optional custom domain")

    @model_validator(mode="after")
    def _check_instance_bounds(self) -> "DeploymentConfiguration":
        if self.max_instances < self.min_instances:
            raise ValueError("max_instances must be greater than or equal to min_instances")
        return self
