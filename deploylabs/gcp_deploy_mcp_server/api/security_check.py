"""
API for checking deployment configurations and generated files against
security best practices.
"""

import logging
import math
import re
from typing import Any, Callable, Dict, List, Mapping, Union

from deploylabs.gcp_deploy_mcp_server.models.deployment import DeploymentConfiguration
from deploylabs.gcp_deploy_mcp_server.models.reports import (
    GeneratedArtifactSet,
    Issue,
    SecurityReport,
    Severity,
)

logger = logging.getLogger(__name__)

ConfigLike = Union[DeploymentConfiguration, Mapping[str, Any]]

ERROR_SEVERITIES = (Severity.CRITICAL, Severity.HIGH)
WARNING_SEVERITIES = (Severity.MEDIUM,)

_SECRET_PATTERNS = [
    re.compile(r"^\s*ARG\b.*PASSWORD", re.IGNORECASE | re.MULTILINE),
    re.compile(r"^\s*ARG\b.*SECRET", re.IGNORECASE | re.MULTILINE),
    re.compile(r"^\s*ARG\b.*KEY", re.IGNORECASE | re.MULTILINE),
    re.compile(r"^\s*ENV\b.*PASSWORD", re.IGNORECASE | re.MULTILINE),
]
_LATEST_TAG_PATTERN = re.compile(r"^\s*FROM\s+\S+:latest\b", re.IGNORECASE | re.MULTILINE)
_PUBLIC_IP_MARKERS = ("ipv4_enabled = true", '"ipv4_enabled": true')
_SSL_MARKERS = ("require_ssl = true", "ssl_mode")
_WIDE_RANGE = "0.0.0.0/0"


def _issue(severity: Severity, code: str, message: str, recommendation: str = "") -> Issue:
    return Issue(severity=severity, code=code, message=message, recommendation=recommendation)


def check_configuration(config: ConfigLike) -> SecurityReport:
    """
    Runs all security checks against a deployment configuration.

    Every rule yields exactly one issue. Critical and high issues are errors,
    medium issues are warnings, and everything else counts as passed.

    Args:
        config: DeploymentConfiguration, or a mapping with the same fields

    Returns:
        SecurityReport with a score from 0 to 100
    """
    values = config.model_dump() if isinstance(config, DeploymentConfiguration) else dict(config)

    all_checks = [rule(values) for rule in CONFIGURATION_RULES]

    errors = [issue for issue in all_checks if issue.severity in ERROR_SEVERITIES]
    warnings = [issue for issue in all_checks if issue.severity in WARNING_SEVERITIES]
    passed = [
        issue
        for issue in all_checks
        if issue.severity not in ERROR_SEVERITIES and issue.severity not in WARNING_SEVERITIES
    ]

    report = SecurityReport(
        passed=passed,
        warnings=warnings,
        errors=errors,
        score=calculate_score(len(errors), len(warnings), len(all_checks)),
    )
    logger.debug(f"Security score {report.score}: {len(errors)} errors, {len(warnings)} warnings")
    return report


def calculate_score(error_count: int, warning_count: int, total: int) -> int:
    """Security score: each error costs 20 and each warning 5, scaled by the rule count."""
    if total <= 0:
        return 100
    penalty = error_count * 20 + warning_count * 5
    # Half-up rounding
    return max(0, int(math.floor(100 - penalty / total * 10 + 0.5)))


# --- Config checks ---

def check_ssl_policy(config: Mapping[str, Any]) -> Issue:
    policy = config.get("ssl_policy")
    if policy == "modern":
        return _issue(Severity.INFO, "ssl_modern", "SSL policy is set to modern", "No action needed.")
    if policy == "restricted":
        return _issue(
            Severity.INFO, "ssl_restricted", "SSL policy is restricted (most secure)", "No action needed."
        )
    if policy == "compatible":
        return _issue(
            Severity.MEDIUM,
            "ssl_compatible",
            "SSL policy allows older cipher suites",
            "Consider upgrading to 'modern' SSL policy to prevent downgrade attacks.",
        )
    return _issue(
        Severity.MEDIUM,
        "ssl_unknown",
        "Unknown SSL policy configured",
        "Set ssl_policy to 'modern' or 'restricted'.",
    )


def check_secret_manager(config: Mapping[str, Any]) -> Issue:
    if config.get("enable_secret_manager") is True:
        return _issue(
            Severity.INFO,
            "secret_manager_enabled",
            "Secret Manager is enabled",
            "Environment secrets will be stored securely in GCP Secret Manager.",
        )
    return _issue(
        Severity.HIGH,
        "secret_manager_disabled",
        "Secret Manager is not enabled",
        "Enable Secret Manager to avoid embedding secrets in environment variables or image layers.",
    )


def check_cloud_armor(config: Mapping[str, Any]) -> Issue:
    if config.get("enable_armor") is True:
        return _issue(
            Severity.INFO,
            "cloud_armor_enabled",
            "Cloud Armor WAF protection is enabled",
            "DDoS and WAF protection active.",
        )
    return _issue(
        Severity.LOW,
        "cloud_armor_disabled",
        "Cloud Armor is not enabled",
        "Consider enabling Cloud Armor for production workloads for WAF/DDoS protection.",
    )


def check_gcp_project_configured(config: Mapping[str, Any]) -> Issue:
    project_id = config.get("gcp_project_id")
    if isinstance(project_id, str) and project_id != "":
        return _issue(Severity.INFO, "gcp_project_set", "GCP project ID is configured", "No action needed.")
    return _issue(
        Severity.MEDIUM,
        "gcp_project_missing",
        "GCP project ID is not set",
        "Set your GCP project ID to scope all resources correctly.",
    )


def check_domain_configured(config: Mapping[str, Any]) -> Issue:
    domain = config.get("domain_name")
    if isinstance(domain, str) and domain != "":
        return _issue(Severity.INFO, "domain_configured", "Custom domain is configured", "No action needed.")
    return _issue(
        Severity.LOW,
        "no_custom_domain",
        "No custom domain configured",
        "Using a custom domain with managed SSL certificates is recommended for production.",
    )


def check_min_instances(config: Mapping[str, Any]) -> Issue:
    if config.get("min_instances") == 0:
        return _issue(
            Severity.LOW,
            "min_instances_zero",
            "Min instances is 0 (cold start possible)",
            "For production, set min_instances >= 1 to avoid cold start latency.",
        )
    return _issue(
        Severity.INFO,
        "min_instances_set",
        "Min instances configured to prevent cold starts",
        "No action needed.",
    )


CONFIGURATION_RULES: List[Callable[[Mapping[str, Any]], Issue]] = [
    check_ssl_policy,
    check_secret_manager,
    check_cloud_armor,
    check_gcp_project_configured,
    check_domain_configured,
    check_min_instances,
]


# --- Generated file checks ---

def scan_dockerfile(content: str) -> List[Issue]:
    """Scans Dockerfile content for security issues."""
    issues = []

    if "USER root" in content or "USER " not in content:
        issues.append(_issue(
            Severity.HIGH,
            "running_as_root",
            "Container may run as root",
            "Add a non-root USER instruction to your Dockerfile.",
        ))
    else:
        issues.append(_issue(Severity.INFO, "non_root_user", "Container runs as non-root user"))

    if any(pattern.search(content) for pattern in _SECRET_PATTERNS):
        issues.append(_issue(
            Severity.CRITICAL,
            "secrets_in_dockerfile",
            "Potential secrets found in Dockerfile ARG/ENV",
            "Use GCP Secret Manager or build-time secret mounts instead of ARG/ENV for secrets.",
        ))
    else:
        issues.append(_issue(Severity.INFO, "no_dockerfile_secrets", "No obvious secrets in Dockerfile"))

    if _LATEST_TAG_PATTERN.search(content):
        issues.append(_issue(
            Severity.MEDIUM,
            "latest_tag",
            "Dockerfile uses :latest tag",
            "Pin to a specific image version for reproducible builds.",
        ))
    else:
        issues.append(_issue(
            Severity.INFO, "pinned_base_image", "Base image is pinned to a specific version"
        ))

    return issues


def scan_terraform(content: str) -> List[Issue]:
    """Scans Terraform content for security issues."""
    issues = []

    if any(marker in content for marker in _PUBLIC_IP_MARKERS):
        issues.append(_issue(
            Severity.HIGH,
            "public_db_ip",
            "Cloud SQL has a public IP enabled",
            "Disable public IP and use Cloud SQL Auth Proxy or Private Service Connect.",
        ))
    else:
        issues.append(_issue(Severity.INFO, "no_public_db_ip", "Cloud SQL does not have a public IP"))

    if any(marker in content for marker in _SSL_MARKERS):
        issues.append(_issue(Severity.INFO, "ssl_enforced", "SSL is enforced for database connections"))
    else:
        issues.append(_issue(
            Severity.MEDIUM,
            "ssl_not_enforced",
            "SSL enforcement not found in DB config",
            "Add `require_ssl = true` to your Cloud SQL settings.",
        ))

    if _WIDE_RANGE in content:
        issues.append(_issue(
            Severity.HIGH,
            "wide_firewall",
            "Firewall rule allows traffic from all IPs (0.0.0.0/0)",
            "Restrict firewall rules to specific IP ranges.",
        ))
    else:
        issues.append(_issue(Severity.INFO, "restricted_firewall", "No wildcard firewall rules detected"))

    return issues


FILE_SCANNERS: Dict[str, Callable[[str], List[Issue]]] = {
    "dockerfile": scan_dockerfile,
    "terraform": scan_terraform,
    "terraform_main": scan_terraform,
    "terraform_variables": scan_terraform,
    "terraform_outputs": scan_terraform,
}


def scan_generated_file(kind: str, content: str) -> List[Issue]:
    """
    Scans generated file content for security issues.

    Args:
        kind: "dockerfile" or "terraform" (artifact keys are accepted too)
        content: File content

    Returns:
        One issue per check

    Raises:
        ValueError: If the kind is not supported
    """
    scanner = FILE_SCANNERS.get(kind)
    if scanner is None:
        raise ValueError(f"Unsupported file kind: {kind}. Expected one of {sorted(FILE_SCANNERS)}")
    return scanner(content or "")


def scan_artifacts(artifacts: GeneratedArtifactSet) -> Dict[str, List[Issue]]:
    """Scans the Dockerfile and the main Terraform file of a generated set."""
    return {
        "dockerfile": scan_dockerfile(artifacts.dockerfile),
        "terraform_main": scan_terraform(artifacts.terraform_main),
    }
