"""Preflight check of the external tools the executors drive.

Every tool is optional: when one is missing its executor falls back to a mock
result. The check exists so users (and CI) can see up front which targets
will really run and which will only be simulated.
"""

import shutil
import subprocess
from dataclasses import dataclass, field
from typing import Any

from mdpolyglot.config import PolyglotConfig


@dataclass
class ToolCheck:
    """Result of checking a single tool.

    Attributes:
        name: Tool name
        available: Whether tool is available
        version: Tool version if available
        required: Whether a missing tool fails the preflight
        path: Path to executable if available
        message: Status message (human-readable context)
        target: Executor family the tool serves
    """

    name: str
    available: bool
    version: str | None = None
    required: bool = False
    path: str | None = None
    message: str = ""
    target: str = ""


@dataclass
class PreflightResult:
    """Result of preflight validation.

    Attributes:
        success: Whether all required tools are available
        checks: Individual tool check results
        errors: Error messages for missing required tools
        warnings: Warning messages for tools that will be mocked
    """

    success: bool = True
    checks: list[ToolCheck] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def add_check(self, check: ToolCheck) -> None:
        """Add a tool check result."""
        self.checks.append(check)

        if not check.available:
            if check.required:
                self.success = False
                self.errors.append(f"Required tool not found: {check.name}")
            else:
                self.warnings.append(f"{check.name} not found: {check.target} will run in mock mode")

    @property
    def all_available(self) -> bool:
        """Whether every checked tool was found."""
        return all(c.available for c in self.checks)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON output."""
        return {
            "success": self.success,
            "all_available": self.all_available,
            "checks": [
                {
                    "name": c.name,
                    "target": c.target,
                    "available": c.available,
                    "version": c.version,
                    "required": c.required,
                    "path": c.path,
                    "message": c.message,
                }
                for c in self.checks
            ],
            "errors": self.errors,
            "warnings": self.warnings,
        }


# (target, command, version args, purpose, install hint)
TOOL_SPECS: list[tuple[str, str, list[str], str, str]] = [
    ("docker", "docker", ["--version"], "Image builds", "https://docs.docker.com/get-docker/"),
    ("terraform", "terraform", ["version"], "Plans", "https://developer.hashicorp.com/terraform/install"),
    ("kubernetes", "kubectl", ["version", "--client"], "Manifest apply", "https://kubernetes.io/docs/tasks/tools/"),
    ("git", "git", ["--version"], "Repository materialization", "https://git-scm.com"),
]


class PreflightChecker:
    """Checks executor binaries.

    Usage:
        checker = PreflightChecker()
        result = checker.check_all(config)
        if not result.all_available:
            print("some targets will be mocked")
    """

    def __init__(self, timeout: int = 10) -> None:
        """Initialize preflight checker.

        Args:
            timeout: Timeout in seconds for version checks
        """
        self.timeout = timeout

    def check_command_available(self, command: str) -> tuple[bool, str | None]:
        """Check if a command is available in PATH.

        Args:
            command: Command name to check

        Returns:
            Tuple of (available, path)
        """
        path = shutil.which(command)
        return path is not None, path

    def get_command_version(
        self,
        command: str,
        version_args: list[str] | None = None,
    ) -> str | None:
        """Get version string for a command.

        Args:
            command: Command to get version for
            version_args: Arguments to get version (default: ["--version"])

        Returns:
            First line of the version output, None if unavailable
        """
        if version_args is None:
            version_args = ["--version"]

        try:
            result = subprocess.run(
                [command, *version_args],
                capture_output=True,
                encoding="utf-8",
                errors="replace",
                timeout=self.timeout,
            )
            if result.returncode == 0:
                output = result.stdout.strip() or result.stderr.strip()
                return output.split("\n")[0] if output else None
        except (subprocess.TimeoutExpired, FileNotFoundError, OSError):
            pass
        return None

    def check_tool(
        self,
        target: str,
        command: str,
        version_args: list[str] | None = None,
        purpose: str = "",
        hint: str = "",
    ) -> ToolCheck:
        """Check a single executor binary.

        Args:
            target: Executor family
            command: Binary name
            version_args: Arguments printing the version
            purpose: What the tool is used for
            hint: Install hint shown when missing

        Returns:
            ToolCheck result
        """
        available, path = self.check_command_available(command)

        if available:
            return ToolCheck(
                name=command,
                available=True,
                version=self.get_command_version(command, version_args),
                path=path,
                message=purpose,
                target=target,
            )
        return ToolCheck(
            name=command,
            available=False,
            message=f"Install from: {hint}" if hint else "Not installed",
            target=target,
        )

    def check_shell(self, preferred: str = "bash") -> ToolCheck:
        """Check the shell used by the executable target (preferred, then sh)."""
        for command in dict.fromkeys([preferred, "sh"]):
            available, _ = self.check_command_available(command)
            if available:
                check = self.check_tool("executable", command, ["--version"], "Script execution")
                if command != preferred:
                    check.message = f"{preferred} missing, falling back to {command}"
                return check
        return ToolCheck(
            name=preferred,
            available=False,
            message="No POSIX shell found",
            target="executable",
        )

    def check_sql_client(self, client: str = "sqlite3") -> ToolCheck:
        """Check the configured SQL client."""
        hints = {
            "sqlite3": "https://sqlite.org/download.html",
            "psql": "https://www.postgresql.org/download/",
        }
        return self.check_tool("sql", client, ["--version"], "SQL statements", hints.get(client, ""))

    def check_all(self, config: PolyglotConfig | None = None) -> PreflightResult:
        """Run all preflight checks.

        Missing tools are reported as warnings unless mock fallback is
        disabled, in which case they are required.

        Args:
            config: Configuration (defaults used if None)

        Returns:
            PreflightResult with all check results
        """
        config = config or PolyglotConfig()
        required = not config.execution.mock_missing_tools
        result = PreflightResult()

        checks = [self.check_tool(*spec) for spec in TOOL_SPECS]
        checks.append(self.check_shell(config.shell.preferred))
        checks.append(self.check_sql_client(config.sql.client))

        for check in checks:
            check.required = required
            result.add_check(check)

        return result
