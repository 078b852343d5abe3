"""
Unit tests for deployment file generation.
"""

import unittest

from jinja2 import DictLoader

from deploylabs.gcp_deploy_mcp_server.api.generate import (
    TEMPLATE_REGISTRY,
    RenderError,
    TemplateNotFoundError,
    build_context,
    create_template_environment,
    generate_all,
    render_template,
    service_name,
)
from deploylabs.gcp_deploy_mcp_server.api.security_check import scan_dockerfile, scan_terraform
from deploylabs.gcp_deploy_mcp_server.models.analysis import AnalysisResult
from deploylabs.gcp_deploy_mcp_server.models.deployment import DeploymentConfiguration, Environment
from deploylabs.gcp_deploy_mcp_server.models.reports import Severity


def _context(**overrides):
    config = DeploymentConfiguration(gcp_project_id="acme-prod", **overrides)
    return build_context(config)


def _blocking(issues):
    return [issue for issue in issues if issue.severity in (Severity.CRITICAL, Severity.HIGH)]


class TestBuildContext(unittest.TestCase):
    """Tests for build_context."""

    def test_defaults(self):
        context = build_context(DeploymentConfiguration())

        self.assertEqual(context["app_name"], "myapp")
        self.assertEqual(context["environment"], "production")
        self.assertEqual(context["elixir_version"], "1.18")
        self.assertIsNone(context["domain_name"])
        self.assertTrue(context["use_vpc"])

    def test_analysis_overrides_app_name_and_elixir_version(self):
        analysis = AnalysisResult(name="my_shop", elixir_version="1.16", repo_url="https://github.com/a/b")

        context = build_context(DeploymentConfiguration(app_name="other"), analysis)

        self.assertEqual(context["app_name"], "my_shop")
        self.assertEqual(context["service_name"], "my-shop")
        self.assertEqual(context["elixir_version"], "1.16")

    def test_analysis_without_name_uses_config(self):
        analysis = AnalysisResult(repo_url="https://github.com/a/b")

        context = build_context(DeploymentConfiguration(app_name="fallback"), analysis)

        self.assertEqual(context["app_name"], "fallback")

    def test_service_name(self):
        self.assertEqual(service_name("My_Shop"), "my-shop")
        self.assertEqual(service_name("__"), "myapp")


class TestGenerateAll(unittest.TestCase):
    """Tests for generate_all and render_template."""

    def test_generates_all_files(self):
        artifacts = generate_all(_context())

        files = artifacts.as_files()
        self.assertEqual(
            set(files),
            {"Dockerfile", "terraform/main.tf", "terraform/variables.tf", "terraform/outputs.tf", "cloudbuild.yaml"},
        )
        for path, content in files.items():
            with self.subTest(path=path):
                self.assertTrue(content.strip())
                self.assertIn("myapp", content)

    def test_registry_covers_artifact_fields(self):
        artifacts = generate_all(_context())
        for key in TEMPLATE_REGISTRY:
            self.assertTrue(getattr(artifacts, key))

    def test_dockerfile(self):
        dockerfile = render_template("dockerfile", _context())

        self.assertIn("USER appuser", dockerfile)
        self.assertIn("/rel/myapp", dockerfile)
        self.assertNotIn(":latest", dockerfile)

    def test_vpc_block_is_conditional(self):
        with_vpc = render_template("terraform_main", _context(use_vpc=True))
        without_vpc = render_template("terraform_main", _context(use_vpc=False))

        self.assertIn("google_compute_network", with_vpc)
        self.assertNotIn("google_compute_network", without_vpc)

    def test_optional_services_are_conditional(self):
        minimal = render_template(
            "terraform_main", _context(enable_armor=False, enable_cdn=False, enable_secret_manager=False)
        )
        full = render_template(
            "terraform_main", _context(enable_armor=True, enable_cdn=True, enable_secret_manager=True)
        )

        self.assertNotIn("google_compute_security_policy", minimal)
        self.assertNotIn("enable_cdn", minimal)
        self.assertNotIn("google_secret_manager_secret", minimal)
        self.assertIn("google_compute_security_policy", full)
        self.assertIn("enable_cdn", full)
        self.assertIn("google_secret_manager_secret", full)

    def test_deletion_protection_follows_environment(self):
        production = render_template("terraform_main", _context(environment=Environment.PRODUCTION))
        staging = render_template("terraform_main", _context(environment=Environment.STAGING))

        self.assertIn("deletion_protection = true", production)
        self.assertIn("deletion_protection = false", staging)

    def test_domain_name(self):
        content = render_template("terraform_main", _context(domain_name="shop.example.com"))

        self.assertIn("shop.example.com", content)

    def test_cloudbuild_secrets(self):
        with_secrets = render_template("cloudbuild", _context(enable_secret_manager=True))
        without_secrets = render_template("cloudbuild", _context(enable_secret_manager=False))

        self.assertIn("--set-secrets", with_secrets)
        self.assertNotIn("--set-secrets", without_secrets)
        self.assertIn("acme-prod", with_secrets)

    def test_generated_files_pass_security_scans(self):
        artifacts = generate_all(_context(use_vpc=True))

        self.assertEqual(_blocking(scan_dockerfile(artifacts.dockerfile)), [])
        self.assertEqual(_blocking(scan_terraform(artifacts.terraform_main)), [])

    def test_public_ip_without_vpc_is_flagged(self):
        content = render_template("terraform_main", _context(use_vpc=False))

        codes = [issue.code for issue in scan_terraform(content)]
        self.assertIn("public_db_ip", codes)


class TestTemplateErrors(unittest.TestCase):
    """Tests for template failures."""

    def test_template_not_found(self):
        env = create_template_environment(DictLoader({}))

        with self.assertRaises(TemplateNotFoundError) as cm:
            render_template("dockerfile", _context(), env)

        self.assertEqual(cm.exception.template_name, "dockerfile")

    def test_unknown_field_fails(self):
        env = create_template_environment(DictLoader({"dockerfile.j2": "FROM {{ base_image }}"}))

        with self.assertRaises(RenderError):
            render_template("dockerfile", _context(), env)

    def test_unregistered_names_are_rejected(self):
        env = create_template_environment(DictLoader({"dockerfile.j2": "FROM x", "../x": "secret"}))

        for name in ("dockerfile.j2", "../x", "Dockerfile"):
            with self.subTest(name=name):
                with self.assertRaises(TemplateNotFoundError) as cm:
                    render_template(name, _context(), env)
                self.assertEqual(cm.exception.template_name, name)

    def test_evaluation_failure_is_wrapped(self):
        env = create_template_environment(DictLoader({"dockerfile.j2": "{{ app_name + 1 }}"}))

        with self.assertRaises(RenderError) as cm:
            render_template("dockerfile", _context(), env)

        self.assertIsInstance(cm.exception.__cause__, TypeError)

    def test_generation_is_all_or_nothing(self):
        templates = {path: "# {{ app_name }}" for path in TEMPLATE_REGISTRY.values()}
        templates["cloudbuild.yaml.j2"] = "{{ missing_value }}"
        env = create_template_environment(DictLoader(templates))

        with self.assertRaises(RenderError):
            generate_all(_context(), env)

    def test_values_are_rendered_as_data(self):
        env = create_template_environment(DictLoader({"dockerfile.j2": "# {{ app_name }}"}))

        content = render_template("dockerfile", {"app_name": "{{ 7 * 7 }}"}, env)

        self.assertEqual(content, "# {{ 7 * 7 }}")


if __name__ == "__main__":
    unittest.main()
