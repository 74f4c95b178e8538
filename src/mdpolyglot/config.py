"""mdpolyglot configuration system.

Configuration is YAML-based with minimal CLI overrides (--config, --ci).
Supports environment variable substitution (${VAR}) in config files.

Configuration file discovery (in priority order):
1. CLI --config argument
2. ./.mdpolyglot/config.yaml
3. ./mdpolyglot.yaml
"""

import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml


DEFAULT_TAG = "polyglot:latest"
DEFAULT_COMMIT_MESSAGE = "Initial commit from polyglot markdown"


class PolyglotError(Exception):
    """Base class for errors raised outside the tagged-result surface."""


class ConfigError(PolyglotError, ValueError):
    """Raised when a configuration file or value is invalid."""


# =============================================================================
# Configuration Dataclasses
# =============================================================================


@dataclass
class ExecutionConfig:
    """Settings shared by every executor.

    Attributes:
        timeout: Per-process timeout in seconds
        workspace_root: Parent directory for isolated workspaces (system temp if None)
        mock_missing_tools: Return a mock success when a tool is missing
    """

    timeout: int = 300
    workspace_root: str | None = None
    mock_missing_tools: bool = True

    def __post_init__(self) -> None:
        """Validate execution configuration."""
        if self.timeout <= 0:
            raise ConfigError(f"execution.timeout must be positive (got {self.timeout})")


@dataclass
class DockerConfig:
    """Docker build settings.

    Attributes:
        tag: Image tag passed to ``docker build -t``
    """

    tag: str = DEFAULT_TAG


@dataclass
class TerraformConfig:
    """Terraform settings.

    Attributes:
        plan_args: Extra arguments appended to ``terraform plan``
    """

    plan_args: list[str] = field(default_factory=list)


@dataclass
class KubernetesConfig:
    """kubectl settings.

    Attributes:
        namespace: Default namespace (``-n``), overridden by document params
        context: kubeconfig context (``--context``)
    """

    namespace: str | None = None
    context: str | None = None


@dataclass
class GitConfig:
    """Git repository materialization settings.

    Attributes:
        author_name: Commit author name
        author_email: Commit author email
        commit_message: Default commit message
    """

    author_name: str = "mdpolyglot"
    author_email: str = "mdpolyglot@localhost"
    commit_message: str = DEFAULT_COMMIT_MESSAGE


@dataclass
class ShellConfig:
    """Shell executor settings.

    Attributes:
        preferred: Preferred shell binary (falls back to sh)
    """

    preferred: str = "bash"


@dataclass
class SQLConfig:
    """SQL executor settings.

    Attributes:
        client: Client binary (sqlite3, psql)
        database: Database path or connection string (temporary sqlite db if None)
    """

    client: str = "sqlite3"
    database: str | None = None

    def __post_init__(self) -> None:
        """Validate SQL configuration."""
        valid_clients = {"sqlite3", "psql"}
        if self.client not in valid_clients:
            raise ConfigError(f"Invalid SQL client: {self.client}. Valid: {sorted(valid_clients)}")


@dataclass
class OutputConfig:
    """Report output configuration.

    Attributes:
        path: Report file path
        format: Report format (markdown, json)
    """

    path: str = "polyglot-report.md"
    format: str = "markdown"

    def __post_init__(self) -> None:
        """Validate output configuration."""
        valid_formats = {"markdown", "json"}
        if self.format not in valid_formats:
            raise ConfigError(f"Invalid output format: {self.format}. Valid: {sorted(valid_formats)}")


@dataclass
class CIConfig:
    """CI/CD-specific configuration.

    Attributes:
        json_output: Use JSON log output
        fail_on_error: Exit non-zero when execution fails
    """

    json_output: bool = False
    fail_on_error: bool = True


@dataclass
class PolyglotConfig:
    """Top-level mdpolyglot configuration.

    Attributes:
        execution: Shared executor settings
        docker: Docker settings
        terraform: Terraform settings
        kubernetes: kubectl settings
        git: Git settings
        shell: Shell settings
        sql: SQL client settings
        output: Report output
        ci: CI/CD settings
    """

    execution: ExecutionConfig = field(default_factory=ExecutionConfig)
    docker: DockerConfig = field(default_factory=DockerConfig)
    terraform: TerraformConfig = field(default_factory=TerraformConfig)
    kubernetes: KubernetesConfig = field(default_factory=KubernetesConfig)
    git: GitConfig = field(default_factory=GitConfig)
    shell: ShellConfig = field(default_factory=ShellConfig)
    sql: SQLConfig = field(default_factory=SQLConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    ci: CIConfig = field(default_factory=CIConfig)

    # Runtime overrides (set by CLI)
    _config_path: Path | None = field(default=None, repr=False)

    @property
    def config_path(self) -> Path | None:
        """Get the path to the config file that was loaded."""
        return self._config_path


# =============================================================================
# Environment Variable Substitution
# =============================================================================

_ENV_VAR_RE = re.compile(r"\$\{([^}]+)\}")


def substitute_env_vars(value: Any) -> Any:
    """Substitute environment variables in config values.

    Supports ${VAR} syntax. Example: ${PGDATABASE} -> value of PGDATABASE

    Args:
        value: Config value (string, dict, list, or other)

    Returns:
        Value with environment variables substituted

    Raises:
        ConfigError: If a referenced variable is not set
    """
    if isinstance(value, str):

        def replace_var(match: re.Match[str]) -> str:
            var_name = match.group(1)
            env_value = os.environ.get(var_name)
            if env_value is None:
                raise ConfigError(f"Environment variable not set: {var_name}")
            return env_value

        return _ENV_VAR_RE.sub(replace_var, value)

    elif isinstance(value, dict):
        return {k: substitute_env_vars(v) for k, v in value.items()}

    elif isinstance(value, list):
        return [substitute_env_vars(v) for v in value]

    return value


# =============================================================================
# Config File Discovery
# =============================================================================


def find_config_file(start_path: Path | None = None) -> Path | None:
    """Find configuration file in standard locations.

    Search order:
    1. ./.mdpolyglot/config.yaml
    2. ./mdpolyglot.yaml

    Args:
        start_path: Starting directory for search (defaults to cwd)

    Returns:
        Path to config file if found, None otherwise
    """
    if start_path is None:
        start_path = Path.cwd()

    start_path = start_path.resolve()

    candidates = [
        start_path / ".mdpolyglot" / "config.yaml",
        start_path / "mdpolyglot.yaml",
    ]

    for candidate in candidates:
        if candidate.exists():
            return candidate

    return None


# =============================================================================
# Config Loading
# =============================================================================


def _section(data: dict[str, Any], name: str) -> dict[str, Any]:
    section = data.get(name) or {}
    if not isinstance(section, dict):
        raise ConfigError(f"Config section '{name}' must be a mapping")
    return section


def load_config_from_dict(data: dict[str, Any]) -> PolyglotConfig:
    """Load configuration from a dictionary.

    Args:
        data: Configuration dictionary

    Returns:
        PolyglotConfig instance

    Raises:
        ConfigError: If a value is invalid
    """
    data = substitute_env_vars(data)

    config = PolyglotConfig()

    if "execution" in data:
        execution_data = _section(data, "execution")
        config.execution = ExecutionConfig(
            timeout=int(execution_data.get("timeout", config.execution.timeout)),
            workspace_root=execution_data.get("workspace_root"),
            mock_missing_tools=execution_data.get(
                "mock_missing_tools", config.execution.mock_missing_tools
            ),
        )

    if "docker" in data:
        config.docker = DockerConfig(tag=_section(data, "docker").get("tag", config.docker.tag))

    if "terraform" in data:
        plan_args = _section(data, "terraform").get("plan_args", [])
        config.terraform = TerraformConfig(plan_args=[str(a) for a in plan_args])

    if "kubernetes" in data:
        kubernetes_data = _section(data, "kubernetes")
        config.kubernetes = KubernetesConfig(
            namespace=kubernetes_data.get("namespace"),
            context=kubernetes_data.get("context"),
        )

    if "git" in data:
        git_data = _section(data, "git")
        config.git = GitConfig(
            author_name=git_data.get("author_name", config.git.author_name),
            author_email=git_data.get("author_email", config.git.author_email),
            commit_message=git_data.get("commit_message", config.git.commit_message),
        )

    if "shell" in data:
        config.shell = ShellConfig(
            preferred=_section(data, "shell").get("preferred", config.shell.preferred)
        )

    if "sql" in data:
        sql_data = _section(data, "sql")
        config.sql = SQLConfig(
            client=sql_data.get("client", config.sql.client),
            database=sql_data.get("database"),
        )

    if "output" in data:
        output_data = _section(data, "output")
        config.output = OutputConfig(
            path=output_data.get("path", config.output.path),
            format=output_data.get("format", config.output.format),
        )

    if "ci" in data:
        ci_data = _section(data, "ci")
        config.ci = CIConfig(
            json_output=ci_data.get("json_output", False),
            fail_on_error=ci_data.get("fail_on_error", True),
        )

    return config


def load_config(
    config_path: Path | None = None,
    auto_discover: bool = True,
) -> PolyglotConfig:
    """Load configuration from file.

    Args:
        config_path: Explicit path to config file
        auto_discover: Whether to search for config file if not specified

    Returns:
        PolyglotConfig instance

    Raises:
        FileNotFoundError: If config_path specified but doesn't exist
        ConfigError: If the file is not valid YAML or holds invalid values
    """
    if config_path is not None:
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")
        found_path = config_path
    elif auto_discover:
        found_path = find_config_file()
    else:
        found_path = None

    if found_path is not None:
        try:
            with open(found_path) as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {found_path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigError(f"Config file must contain a mapping: {found_path}")
        config = load_config_from_dict(data)
        config._config_path = found_path
    else:
        config = PolyglotConfig()

    return config


def create_default_config() -> str:
    """Create default configuration YAML content.

    Returns:
        YAML string with default configuration and comments
    """
    return '''# mdpolyglot Configuration

# Settings shared by every executor
execution:
  timeout: 300              # Seconds before a child process is killed
  # workspace_root: "/tmp"  # Parent directory for isolated workspaces
  mock_missing_tools: true  # Mock success when docker/terraform/... is missing

docker:
  tag: "polyglot:latest"

terraform:
  plan_args: []             # e.g. ["-refresh=false"]

kubernetes:
  # namespace: "default"
  # context: "kind-dev"

git:
  author_name: "mdpolyglot"
  author_email: "mdpolyglot@localhost"
  commit_message: "Initial commit from polyglot markdown"

shell:
  preferred: "bash"         # Falls back to sh when missing

sql:
  client: "sqlite3"         # sqlite3, psql
  # database: "${DATABASE_URL}"

# Report output
output:
  path: "polyglot-report.md"
  format: "markdown"        # markdown, json

# CI/CD settings
ci:
  json_output: false
  fail_on_error: true
'''
