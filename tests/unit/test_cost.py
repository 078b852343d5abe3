"""
Unit tests for the cost estimator.
"""

import unittest

from deploylabs.gcp_deploy_mcp_server.api.cost import (
    available_tiers,
    estimate,
    estimate_cloud_sql,
    tier_description,
)
from deploylabs.gcp_deploy_mcp_server.models.deployment import BOOLEAN_FIELDS, DeploymentConfiguration
from deploylabs.gcp_deploy_mcp_server.utils.pricing import CLOUD_SQL_TIERS


class TestEstimate(unittest.TestCase):
    """Tests for estimate."""

    def test_default_configuration(self):
        breakdown = estimate(DeploymentConfiguration())

        self.assertAlmostEqual(breakdown.cloud_run, 20.55, places=2)
        self.assertAlmostEqual(breakdown.cloud_sql, 12.85, places=2)
        self.assertAlmostEqual(breakdown.secret_manager, 0.30, places=2)
        self.assertEqual(breakdown.cloud_armor, 0.0)
        self.assertEqual(breakdown.cdn, 0.0)
        self.assertAlmostEqual(breakdown.total, 33.70, places=2)
        self.assertEqual(breakdown.currency, "USD")

    def test_total_is_sum_of_components(self):
        configs = [
            DeploymentConfiguration(),
            DeploymentConfiguration(enable_armor=True, enable_cdn=True),
            DeploymentConfiguration(db_tier="db-n1-highmem-4", min_instances=3, memory_mb=2048, cpu_count=2),
            DeploymentConfiguration(min_instances=0, enable_secret_manager=False),
        ]
        for config in configs:
            with self.subTest(config=config):
                breakdown = estimate(config)
                self.assertEqual(breakdown.total, round(sum(breakdown.components().values()), 2))

    def test_optional_services(self):
        breakdown = estimate(DeploymentConfiguration(enable_armor=True, enable_cdn=True))

        self.assertAlmostEqual(breakdown.cloud_armor, 5.08, delta=0.01)
        self.assertAlmostEqual(breakdown.cdn, 0.03, delta=0.01)

    def test_toggles_never_lower_the_total(self):
        for field in BOOLEAN_FIELDS:
            with self.subTest(field=field):
                on = estimate(DeploymentConfiguration(**{field: True}))
                off = estimate(DeploymentConfiguration(**{field: False}))
                self.assertGreaterEqual(on.total, off.total)

    def test_components_are_non_negative(self):
        breakdown = estimate(DeploymentConfiguration(min_instances=0, db_disk_size_gb=1, memory_mb=256))

        for name, value in breakdown.components().items():
            with self.subTest(component=name):
                self.assertGreaterEqual(value, 0)
        self.assertGreaterEqual(breakdown.total, 0)

    def test_more_instances_cost_more(self):
        small = estimate(DeploymentConfiguration(min_instances=1))
        large = estimate(DeploymentConfiguration(min_instances=4))

        self.assertGreater(large.cloud_run, small.cloud_run)

    def test_unknown_tier_only_charges_storage(self):
        config = DeploymentConfiguration(db_tier="db-custom-unknown", db_disk_size_gb=10)

        # 10 GB storage plus 2.5 GB of backups
        self.assertAlmostEqual(estimate_cloud_sql(config), 1.9, places=6)

    def test_mapping_input(self):
        from_mapping = estimate({"db_tier": "db-g1-small", "enable_armor": True, "domain_name": None})
        from_model = estimate(DeploymentConfiguration(db_tier="db-g1-small", enable_armor=True))

        self.assertEqual(from_mapping, from_model)


class TestTiers(unittest.TestCase):
    """Tests for the Cloud SQL tier helpers."""

    def test_tier_description(self):
        self.assertEqual(tier_description("db-n1-standard-2"), "2 vCPU, 7.5 GB RAM")
        self.assertEqual(tier_description("db-f1-micro"), "0.6 vCPU, 0.6 GB RAM")

    def test_unknown_tier_description(self):
        self.assertEqual(tier_description("db-custom-4-16384"), "db-custom-4-16384")

    def test_available_tiers(self):
        tiers = available_tiers()

        self.assertEqual([tier["tier"] for tier in tiers], list(CLOUD_SQL_TIERS))
        micro = tiers[0]
        self.assertEqual(micro["tier"], "db-f1-micro")
        self.assertAlmostEqual(micro["monthly_instance_cost"], 10.95, places=2)


if __name__ == "__main__":
    unittest.main()
