"""
API for generating deployment files from Jinja2 templates.

Templates are rendered in a sandboxed environment with strict undefined
handling, so configuration values are only ever substituted as data and a
template referencing an unknown field fails instead of rendering blanks.
"""

import functools
import logging
import re
from typing import Any, Dict, Optional

from jinja2 import FileSystemLoader, StrictUndefined, TemplateNotFound
from jinja2.sandbox import SandboxedEnvironment

from deploylabs.gcp_deploy_mcp_server.models.analysis import AnalysisResult
from deploylabs.gcp_deploy_mcp_server.models.deployment import DeploymentConfiguration
from deploylabs.gcp_deploy_mcp_server.models.reports import GeneratedArtifactSet
from deploylabs.gcp_deploy_mcp_server.utils.templates import get_templates_dir

logger = logging.getLogger(__name__)

TEMPLATE_REGISTRY = {
    "dockerfile": "dockerfile.j2",
    "terraform_main": "terraform/main.tf.j2",
    "terraform_variables": "terraform/variables.tf.j2",
    "terraform_outputs": "terraform/outputs.tf.j2",
    "cloudbuild": "cloudbuild.yaml.j2",
}

DEFAULT_APP_NAME = "myapp"
DEFAULT_ELIXIR_VERSION = "1.18"
DEFAULT_OTP_VERSION = "27"


class GenerationError(Exception):
    """Exception raised when deployment files cannot be generated."""
    pass


class TemplateNotFoundError(GenerationError):
    """Exception raised when a template does not exist."""

    def __init__(self, template_name: str):
        super().__init__(f"Template not found: {template_name}")
        self.template_name = template_name


class RenderError(GenerationError):
    """Exception raised when a template fails to render."""
    pass


def create_template_environment(loader=None) -> SandboxedEnvironment:
    """
    Creates the Jinja2 environment used to render deployment templates.

    Args:
        loader: Template loader (defaults to the package templates directory)

    Returns:
        A sandboxed Jinja2 environment
    """
    return SandboxedEnvironment(
        loader=loader or FileSystemLoader(get_templates_dir()),
        undefined=StrictUndefined,
        autoescape=False,
        keep_trailing_newline=True,
        trim_blocks=True,
        lstrip_blocks=True,
    )


@functools.lru_cache(maxsize=1)
def get_template_environment() -> SandboxedEnvironment:
    """Returns the shared template environment."""
    return create_template_environment()


def render_template(
    name: str, context: Dict[str, Any], env: Optional[SandboxedEnvironment] = None
) -> str:
    """
    Renders a single template with the provided context.

    Args:
        name: Template key from TEMPLATE_REGISTRY
        context: Flat render context, usually from build_context
        env: Template environment (defaults to the shared environment)

    Returns:
        The rendered text

    Raises:
        TemplateNotFoundError: If the key is not registered or its file does not exist
        RenderError: If the template cannot be evaluated
    """
    if name not in TEMPLATE_REGISTRY:
        raise TemplateNotFoundError(name)

    env = env or get_template_environment()
    template_name = TEMPLATE_REGISTRY[name]

    try:
        template = env.get_template(template_name)
        return template.render(**context)
    except TemplateNotFound as e:
        raise TemplateNotFoundError(name) from e
    except Exception as e:
        logger.error(f"Error rendering template {template_name}: {e}")
        raise RenderError(f"Failed to render {template_name}: {e}") from e


def generate_all(
    context: Dict[str, Any], env: Optional[SandboxedEnvironment] = None
) -> GeneratedArtifactSet:
    """
    Generates all deployment files for the given context.

    Either every file renders or the first failure is raised; a partial set
    is never returned.

    Args:
        context: Flat render context, usually from build_context
        env: Template environment (defaults to the shared environment)

    Returns:
        GeneratedArtifactSet with all five files
    """
    logger.info(f"Generating deployment files for {context.get('app_name')}")

    rendered = {key: render_template(key, context, env) for key in TEMPLATE_REGISTRY}
    return GeneratedArtifactSet(**rendered)


def build_context(
    config: DeploymentConfiguration, analysis: Optional[AnalysisResult] = None
) -> Dict[str, Any]:
    """
    Builds the render context from a deployment configuration and analysis result.

    Args:
        config: Current deployment configuration
        analysis: Repository analysis, if one has been run

    Returns:
        Flat dict of template variables
    """
    app_name = (analysis.name if analysis else None) or config.app_name or DEFAULT_APP_NAME
    elixir_version = (analysis.elixir_version if analysis else None) or DEFAULT_ELIXIR_VERSION

    return {
        "app_name": app_name,
        "service_name": service_name(app_name),
        "environment": config.environment.value,
        "gcp_project_id": config.gcp_project_id or "",
        "gcp_region": config.gcp_region,
        "gcp_zone": config.gcp_zone,
        "elixir_version": elixir_version,
        "otp_version": DEFAULT_OTP_VERSION,
        "db_tier": config.db_tier,
        "db_version": config.db_version,
        "db_disk_size_gb": config.db_disk_size_gb,
        "min_instances": config.min_instances,
        "max_instances": config.max_instances,
        "memory_mb": config.memory_mb,
        "cpu_count": config.cpu_count,
        "use_vpc": config.use_vpc,
        "enable_cdn": config.enable_cdn,
        "enable_armor": config.enable_armor,
        "enable_secret_manager": config.enable_secret_manager,
        "ssl_policy": config.ssl_policy,
        "domain_name": config.domain_name or None,
    }


def service_name(app_name: str) -> str:
    """Converts an application name into a valid Cloud Run / Cloud SQL resource name."""
    name = re.sub(r"[^a-z0-9-]+", "-", app_name.lower()).strip("-")
    return name or DEFAULT_APP_NAME
