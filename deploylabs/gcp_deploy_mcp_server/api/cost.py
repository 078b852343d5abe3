"""
API for estimating monthly GCP costs of a deployment configuration.

All costs are in USD and represent approximate monthly totals. Actual costs
vary with traffic, usage patterns and billing options.
"""

import logging
from typing import Any, Dict, List, Mapping, Union

from deploylabs.gcp_deploy_mcp_server.models.deployment import DeploymentConfiguration
from deploylabs.gcp_deploy_mcp_server.models.reports import CostBreakdown
from deploylabs.gcp_deploy_mcp_server.utils.pricing import (
    CDN,
    CLOUD_ARMOR,
    CLOUD_RUN,
    CLOUD_SQL,
    CLOUD_SQL_TIERS,
    DEFAULT_CPU_UTILIZATION,
    DEFAULT_MONTHLY_REQUESTS,
    HOURS_PER_MONTH,
    SECONDS_PER_MONTH,
    SECRET_MANAGER,
)

logger = logging.getLogger(__name__)

ConfigLike = Union[DeploymentConfiguration, Mapping[str, Any]]


def estimate(config: ConfigLike) -> CostBreakdown:
    """
    Calculates the estimated monthly cost for a deployment configuration.

    Components are rounded to cents only at the end, and the total is the sum
    of the rounded components.

    Args:
        config: DeploymentConfiguration, or a mapping with the same fields

    Returns:
        CostBreakdown with one entry per service and the total
    """
    config = _as_configuration(config)

    components = {
        "cloud_run": estimate_cloud_run(config),
        "cloud_sql": estimate_cloud_sql(config),
        "cloud_armor": estimate_cloud_armor() if config.enable_armor else 0.0,
        "cdn": estimate_cdn() if config.enable_cdn else 0.0,
        "secret_manager": estimate_secret_manager() if config.enable_secret_manager else 0.0,
    }

    rounded = {name: round(value, 2) for name, value in components.items()}
    total = round(sum(rounded.values()), 2)

    breakdown = CostBreakdown(**rounded, total=total, currency="USD")
    logger.debug(f"Estimated monthly cost: {breakdown}")
    return breakdown


def tier_description(tier: str) -> str:
    """Returns a human-readable description of a Cloud SQL tier."""
    tier_info = CLOUD_SQL_TIERS.get(tier)
    if tier_info is None:
        return tier
    return f"{tier_info['vcpu']} vCPU, {tier_info['ram_gb']} GB RAM"


def available_tiers() -> List[Dict[str, Any]]:
    """Lists the known Cloud SQL tiers with their description and monthly instance price."""
    return [
        {
            "tier": tier,
            "description": tier_description(tier),
            "monthly_instance_cost": round(tier_info["price_per_hour"] * HOURS_PER_MONTH, 2),
        }
        for tier, tier_info in CLOUD_SQL_TIERS.items()
    ]


def estimate_cloud_run(config: DeploymentConfiguration) -> float:
    memory_gib = config.memory_mb / 1024.0

    # Minimum always-on instances
    min_instance_cpu_cost = (
        config.min_instances * config.cpu_count * HOURS_PER_MONTH * CLOUD_RUN["min_instance_cpu_per_hour"]
    )
    min_instance_mem_cost = (
        config.min_instances * memory_gib * HOURS_PER_MONTH * CLOUD_RUN["min_instance_memory_per_gib_hour"]
    )

    # Active request handling at the default utilization
    active_cpu_seconds = SECONDS_PER_MONTH * DEFAULT_CPU_UTILIZATION * config.cpu_count
    active_cpu_cost = active_cpu_seconds * CLOUD_RUN["cpu_per_vcpu_second"]

    active_mem_seconds = SECONDS_PER_MONTH * DEFAULT_CPU_UTILIZATION * memory_gib
    active_mem_cost = active_mem_seconds * CLOUD_RUN["memory_per_gib_second"]

    request_cost = DEFAULT_MONTHLY_REQUESTS / 1_000_000.0 * CLOUD_RUN["request_per_million"]

    return min_instance_cpu_cost + min_instance_mem_cost + active_cpu_cost + active_mem_cost + request_cost


def estimate_cloud_sql(config: DeploymentConfiguration) -> float:
    tier = CLOUD_SQL["tiers"].get(config.db_tier)
    instance_cost = tier["price_per_hour"] * HOURS_PER_MONTH if tier else 0.0

    storage_cost = config.db_disk_size_gb * CLOUD_SQL["storage_per_gb_month"]
    # Assume backup = 25% of disk size
    backup_cost = config.db_disk_size_gb * 0.25 * CLOUD_SQL["backup_per_gb_month"]

    return instance_cost + storage_cost + backup_cost


def estimate_cloud_armor() -> float:
    # Policy fee + requests
    return (
        CLOUD_ARMOR["policy_per_month"]
        + DEFAULT_MONTHLY_REQUESTS / 1_000_000.0 * CLOUD_ARMOR["per_million_requests"]
    )


def estimate_cdn() -> float:
    # Assume 1 GB egress and 0.5 GB cache fill per month as baseline
    return 1.0 * CDN["egress_per_gb"] + 0.5 * CDN["fill_per_gb"]


def estimate_secret_manager() -> float:
    # Assume 5 active secrets, 1000 accesses/month
    return (
        5 * SECRET_MANAGER["active_version_per_month"]
        + 1000 / 10_000.0 * SECRET_MANAGER["per_10k_access"]
    )


def _as_configuration(config: ConfigLike) -> DeploymentConfiguration:
    if isinstance(config, DeploymentConfiguration):
        return config
    return DeploymentConfiguration(**{k: v for k, v in dict(config).items() if v is not None})
