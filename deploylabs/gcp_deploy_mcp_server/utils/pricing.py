"""
Embedded GCP pricing data.

Prices are approximate USD list prices for us-central1. They are meant for
ballpark estimates and should be checked against current GCP pricing.
"""

from typing import Dict

HOURS_PER_MONTH = 730.0
SECONDS_PER_MONTH = 730 * 3600

# Assume 10% CPU utilization for active instances
DEFAULT_CPU_UTILIZATION = 0.1
# Assume 100k requests/month as a starting estimate
DEFAULT_MONTHLY_REQUESTS = 100_000

CLOUD_RUN = {
    "cpu_per_vcpu_second": 0.00002400,
    "memory_per_gib_second": 0.00000250,
    "request_per_million": 0.40,
    "min_instance_cpu_per_hour": 0.01800,
    "min_instance_memory_per_gib_hour": 0.00200,
}

# Cloud SQL machine tiers, hourly rates
CLOUD_SQL_TIERS: Dict[str, Dict[str, float]] = {
    "db-f1-micro": {"vcpu": 0.6, "ram_gb": 0.6, "price_per_hour": 0.0150},
    "db-g1-small": {"vcpu": 1.7, "ram_gb": 1.7, "price_per_hour": 0.0500},
    "db-n1-standard-1": {"vcpu": 1, "ram_gb": 3.75, "price_per_hour": 0.0965},
    "db-n1-standard-2": {"vcpu": 2, "ram_gb": 7.5, "price_per_hour": 0.1930},
    "db-n1-standard-4": {"vcpu": 4, "ram_gb": 15.0, "price_per_hour": 0.3860},
    "db-n1-highmem-2": {"vcpu": 2, "ram_gb": 13.0, "price_per_hour": 0.2320},
    "db-n1-highmem-4": {"vcpu": 4, "ram_gb": 26.0, "price_per_hour": 0.4640},
}

CLOUD_SQL = {
    "tiers": CLOUD_SQL_TIERS,
    "storage_per_gb_month": 0.17,
    "backup_per_gb_month": 0.08,
}

CLOUD_ARMOR = {
    "policy_per_month": 5.00,
    "per_million_requests": 0.75,
}

CDN = {
    "egress_per_gb": 0.02,
    "fill_per_gb": 0.01,
}

SECRET_MANAGER = {
    "per_10k_access": 0.03,
    "active_version_per_month": 0.06,
}

