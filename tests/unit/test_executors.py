"""Unit tests for executors.

Child processes are replaced by the ``fake_processes`` recorder and binary
lookup by ``tools_present``/``tools_absent``; only output decoding runs a
real ``sh``.
"""

import shutil
import subprocess
from pathlib import Path
from unittest.mock import patch

import pytest

from mdpolyglot.config import PolyglotConfig, load_config_from_dict
from mdpolyglot.executors import (
    DockerExecutor,
    GitExecutor,
    KubernetesExecutor,
    NoopExecutor,
    ShellExecutor,
    SQLExecutor,
    TerraformExecutor,
)
from mdpolyglot.executors.base import ProcessOutcome, ProcessRun, run_process
from mdpolyglot.executors.kubernetes import manifest_label
from mdpolyglot.executors.sql import statement_label
from mdpolyglot.executors.workspace import WorkspaceAllocator, resolve_inside
from mdpolyglot.models.polyglot import Polyglot
from mdpolyglot.models.results import ErrorKind
from mdpolyglot.pipeline import PolyglotPipeline
from mdpolyglot.transpilers import DockerBuild, GitRepository, SQLBatch
from tests.fixtures.processes import FakeProcesses, completed


def parse(text: str, config: PolyglotConfig) -> Polyglot:
    return PolyglotPipeline(config).parse(text)


# =============================================================================
# Child processes
# =============================================================================


class TestRunProcess:
    """Tests for run_process outcome mapping."""

    def test_absent_binary(self) -> None:
        """Test a missing binary is reported without spawning."""
        with patch("mdpolyglot.executors.base.shutil.which", return_value=None):
            run = run_process(["nope", "--version"])
        assert run.outcome is ProcessOutcome.ABSENT
        assert run.code == -1
        assert run.error is ErrorKind.INVOCATION_FAILED

    def test_completed(self) -> None:
        """Test exit code and combined output are captured."""
        done = subprocess.CompletedProcess(["tool"], 3, stdout="boom\n")
        with (
            patch("mdpolyglot.executors.base.shutil.which", return_value="/bin/tool"),
            patch("mdpolyglot.executors.base.subprocess.run", return_value=done) as run_mock,
        ):
            run = run_process(["tool"], input="data", timeout=5)
        assert run.outcome is ProcessOutcome.COMPLETED
        assert (run.code, run.output) == (3, "boom\n")
        assert run.error is ErrorKind.TOOL_FAILED
        kwargs = run_mock.call_args.kwargs
        assert kwargs["input"] == "data"
        assert kwargs["timeout"] == 5
        assert kwargs["stderr"] is subprocess.STDOUT
        assert kwargs["errors"] == "replace"

    @pytest.mark.skipif(shutil.which("sh") is None, reason="sh not installed")
    def test_undecodable_output(self) -> None:
        """Test bytes that are not UTF-8 are replaced instead of failing the run."""
        run = run_process(["sh", "-c", "printf '\\377\\376ok'; exit 0"])
        assert run.outcome is ProcessOutcome.COMPLETED
        assert run.ok is True
        assert run.output == "\ufffd\ufffdok"

    def test_timeout(self) -> None:
        """Test a timeout keeps partial output."""
        expired = subprocess.TimeoutExpired(["tool"], 5, output=b"partial")
        with (
            patch("mdpolyglot.executors.base.shutil.which", return_value="/bin/tool"),
            patch("mdpolyglot.executors.base.subprocess.run", side_effect=expired),
        ):
            run = run_process(["tool"], timeout=5)
        assert run.outcome is ProcessOutcome.TIMEOUT
        assert run.error is ErrorKind.TIMEOUT
        assert run.output.startswith("partial")
        assert "timed out after 5s" in run.output

    def test_os_error(self) -> None:
        """Test a spawn failure is an invocation failure."""
        with (
            patch("mdpolyglot.executors.base.shutil.which", return_value="/bin/tool"),
            patch("mdpolyglot.executors.base.subprocess.run", side_effect=PermissionError("denied")),
        ):
            run = run_process(["tool"])
        assert run.outcome is ProcessOutcome.RAISED
        assert run.error is ErrorKind.INVOCATION_FAILED
        assert "denied" in run.output

    def test_to_unit(self) -> None:
        """Test a run converts to a batch unit."""
        unit = ProcessRun(ProcessOutcome.COMPLETED, 1, "bad").to_unit("step")
        assert (unit.unit, unit.ok, unit.code, unit.error) == ("step", False, 1, ErrorKind.TOOL_FAILED)


# =============================================================================
# Workspaces
# =============================================================================


class TestWorkspace:
    """Tests for workspace allocation."""

    def test_unique_names(self) -> None:
        """Test names never repeat within an allocator."""
        allocator = WorkspaceAllocator(prefix="t_")
        names = {allocator.next_name() for _ in range(100)}
        assert len(names) == 100

    def test_allocators_do_not_collide(self) -> None:
        """Test two allocators with the same prefix produce different names."""
        assert WorkspaceAllocator("t_").next_name() != WorkspaceAllocator("t_").next_name()

    def test_removed_on_exit(self, tmp_path: Path) -> None:
        """Test the workspace is removed after use."""
        with WorkspaceAllocator(root=tmp_path).acquire() as workspace:
            (workspace / "f").write_text("x")
            assert workspace.parent == tmp_path
        assert not workspace.exists()

    def test_removed_on_error(self, tmp_path: Path) -> None:
        """Test the workspace is removed when the body raises."""
        with pytest.raises(RuntimeError):
            with WorkspaceAllocator(root=tmp_path).acquire() as workspace:
                raise RuntimeError("boom")
        assert not workspace.exists()

    @pytest.mark.parametrize("relative", ["../x", "/etc/passwd", "a/../../b", "."])
    def test_resolve_inside_rejects_escapes(self, tmp_path: Path, relative: str) -> None:
        """Test paths leaving the workspace are rejected."""
        assert resolve_inside(tmp_path, relative) is None

    def test_resolve_inside_accepts_nested(self, tmp_path: Path) -> None:
        """Test nested relative paths resolve under the workspace."""
        assert resolve_inside(tmp_path, "src/app.py") == tmp_path.resolve() / "src" / "app.py"


# =============================================================================
# Shared behaviour
# =============================================================================


class TestExecutorContract:
    """Tests for behaviour shared by all executors."""

    def test_transpile_error_is_a_failure(self, config: PolyglotConfig, plain_doc: str) -> None:
        """Test a document without the artifact fails with transpile_failed."""
        result = DockerExecutor(config).execute(parse(plain_doc, config))
        assert result.ok is False
        assert result.error is ErrorKind.TRANSPILE_FAILED
        assert result.details["output"] == "no_dockerfile_found"

    def test_wrong_target_configuration(self, config: PolyglotConfig) -> None:
        """Test a configuration for another target is refused."""
        result = DockerExecutor(config).execute(SQLBatch(statements=["SELECT 1;"]))
        assert result.error is ErrorKind.TRANSPILE_FAILED

    def test_unexpected_exception_is_unhandled(
        self, config: PolyglotConfig, dockerfile_doc: str, tools_present: None
    ) -> None:
        """Test execute never raises."""
        with patch("mdpolyglot.executors.base.run_process", side_effect=RuntimeError("kaboom")):
            result = DockerExecutor(config).execute(parse(dockerfile_doc, config))
        assert result.ok is False
        assert result.error is ErrorKind.UNHANDLED
        assert result.details["output"] == "kaboom"

    def test_strict_mode_reports_missing_tool(
        self, strict_config: PolyglotConfig, dockerfile_doc: str, tools_absent: None
    ) -> None:
        """Test mocking can be turned off."""
        result = DockerExecutor(strict_config).execute(parse(dockerfile_doc, strict_config))
        assert result.ok is False
        assert result.error is ErrorKind.TOOL_NOT_INSTALLED

    def test_metadata(self, config: PolyglotConfig, tools_absent: None) -> None:
        """Test executor metadata."""
        assert DockerExecutor(config).get_metadata() == {
            "name": "docker",
            "target": "docker",
            "binaries": ["docker"],
            "available": False,
        }

    def test_version(self, config: PolyglotConfig, fake_processes: FakeProcesses) -> None:
        """Test the version is the first output line."""
        fake_processes.queue(completed("Docker version 27.0.1\nmore\n"))
        assert DockerExecutor(config).get_version() == "Docker version 27.0.1"


# =============================================================================
# Per-target executors
# =============================================================================


class TestDockerExecutor:
    """Tests for DockerExecutor."""

    def test_mock_when_missing(self, config: PolyglotConfig, dockerfile_doc: str, tools_absent: None) -> None:
        """Test a missing docker binary yields a mock success."""
        result = DockerExecutor(config).execute(parse(dockerfile_doc, config))
        assert result.ok is True
        assert result.mock is True
        assert result.details["image"] == "api:1.0"
        assert result.details["note"].startswith("docker not installed - would execute: docker build")

    def test_build(self, config: PolyglotConfig, dockerfile_doc: str, fake_processes: FakeProcesses) -> None:
        """Test the Dockerfile is written and the build runs in the workspace."""
        seen: list[str] = []

        def build(command: list[str], **kwargs: object) -> ProcessRun:
            seen.append((Path(str(kwargs["cwd"])) / "Dockerfile").read_text())
            return fake_processes(command, **kwargs)

        with patch("mdpolyglot.executors.base.run_process", side_effect=build):
            result = DockerExecutor(config).execute(parse(dockerfile_doc, config))

        assert result.ok is True
        assert result.mock is False
        assert result.details["image"] == "api:1.0"
        assert "built_at" in result.details
        assert seen[0].startswith("FROM python:3.12-slim")
        assert fake_processes.calls[0][0][:2] == ["docker", "build"]
        assert not fake_processes.workspaces[0].exists()

    def test_build_failure(self, config: PolyglotConfig, fake_processes: FakeProcesses) -> None:
        """Test a failing build reports tool_failed with code and output."""
        fake_processes.queue(completed("step 2 failed", code=1))
        result = DockerExecutor(config).execute(DockerBuild(dockerfile="FROM x", command=["docker", "build", "."]))
        assert result.error is ErrorKind.TOOL_FAILED
        assert result.details == {"code": 1, "output": "step 2 failed"}


class TestTerraformExecutor:
    """Tests for TerraformExecutor."""

    def test_mock_when_missing(self, config: PolyglotConfig, terraform_doc: str, tools_absent: None) -> None:
        """Test the mock plan."""
        result = TerraformExecutor(config).execute(parse(terraform_doc, config))
        assert result.mock is True
        assert result.details["plan"] == "Terraform not installed - would execute: terraform plan"
        assert result.details["next_step"] == "Install terraform to execute"

    def test_init_then_plan(self, terraform_doc: str, tmp_path: Path, fake_processes: FakeProcesses) -> None:
        """Test init runs before plan with the configured extra arguments."""
        config = load_config_from_dict(
            {"execution": {"workspace_root": str(tmp_path)}, "terraform": {"plan_args": ["-refresh=false"]}}
        )
        fake_processes.queue(completed("initialized"), completed("Plan: 1 to add"))
        result = TerraformExecutor(config).execute(parse(terraform_doc, config))

        assert result.ok is True
        assert result.details["plan"] == "Plan: 1 to add"
        assert result.details["next_step"].startswith("terraform apply -input=false -auto-approve")
        init, plan = (call[0] for call in fake_processes.calls)
        assert init[:2] == ["terraform", "init"]
        assert plan[:2] == ["terraform", "plan"]
        assert plan[-2:] == ["-no-color", "-refresh=false"]

    def test_init_failure_stops(self, config: PolyglotConfig, terraform_doc: str, fake_processes: FakeProcesses) -> None:
        """Test a failing init skips the plan."""
        fake_processes.queue(completed("no provider", code=1), completed("unreachable"))
        result = TerraformExecutor(config).execute(parse(terraform_doc, config))
        assert result.error is ErrorKind.TOOL_FAILED
        assert result.details["step"] == "init"
        assert len(fake_processes.calls) == 1


class TestKubernetesExecutor:
    """Tests for KubernetesExecutor."""

    def test_mock_batch(self, config: PolyglotConfig, kubernetes_doc: str, tools_absent: None) -> None:
        """Test every manifest is reported as a mocked unit."""
        result = KubernetesExecutor(config).execute(parse(kubernetes_doc, config))
        assert result.ok is True
        assert result.mock is True
        assert (result.applied, result.failed) == (2, 0)
        assert [u.unit for u in result.units] == ["deployment/web", "service/web"]
        assert result.units[0].output == "kubectl not installed - mock execution"

    def test_partial_failure_continues(
        self, config: PolyglotConfig, kubernetes_doc: str, fake_processes: FakeProcesses
    ) -> None:
        """Test one failing manifest does not abort the batch."""
        fake_processes.queue(completed("error: invalid", code=1), completed("service/web created"))
        result = KubernetesExecutor(config).execute(parse(kubernetes_doc, config))

        assert result.ok is True
        assert (result.applied, result.failed) == (1, 1)
        assert result.units[0].error is ErrorKind.TOOL_FAILED
        assert result.details["namespace"] == "staging"
        first, second = fake_processes.calls
        assert first[0] == ["kubectl", "apply", "-f", "-", "-n", "staging"]
        assert "kind: Deployment" in str(first[1]["input"])
        assert "kind: Service" in str(second[1]["input"])

    def test_manifest_label(self) -> None:
        """Test labels for named, unnamed and invalid manifests."""
        assert manifest_label("kind: Pod\nmetadata:\n  name: api\n", 1) == "pod/api"
        assert manifest_label("kind: Pod\n", 2) == "pod-2"
        assert manifest_label("a: [", 3) == "manifest-3"


class TestGitExecutor:
    """Tests for GitExecutor."""

    def test_mock_when_missing(self, config: PolyglotConfig, git_doc: str, tools_absent: None) -> None:
        """Test the mock result lists the files."""
        result = GitExecutor(config).execute(parse(git_doc, config))
        assert result.mock is True
        assert result.details["files_created"] == 0
        assert result.details["files"] == ["README.md", "src/app.py"]

    def test_files_and_commands(self, config: PolyglotConfig, git_doc: str, fake_processes: FakeProcesses) -> None:
        """Test files are written before the commands, which are the units."""
        written: list[bool] = []

        def run(command: list[str], **kwargs: object) -> ProcessRun:
            written.append((Path(str(kwargs["cwd"])) / "src" / "app.py").is_file())
            return fake_processes(command, **kwargs)

        with patch("mdpolyglot.executors.base.run_process", side_effect=run):
            result = GitExecutor(config).execute(parse(git_doc, config))

        assert result.ok is True
        assert result.details["files_created"] == 2
        assert result.details["file_errors"] == []
        assert (result.applied, result.failed) == (3, 0)
        assert all(written)
        assert [call[0] for call in fake_processes.calls][0] == ["sh", "-c", "git init"]
        env = fake_processes.calls[0][1]["env"]
        assert env["GIT_AUTHOR_NAME"] == "mdpolyglot"  # type: ignore[index]

    def test_counts_only_commands(self, config: PolyglotConfig, fake_processes: FakeProcesses) -> None:
        """Test N commands with M failures give applied N - M and failed M."""
        fake_processes.queue(completed(), completed("no\n", code=1), completed())
        repository = GitRepository(files={"a.txt": "a", "b.txt": "b"}, init_commands=["true", "false", "true"])
        result = GitExecutor(config).execute(repository)

        assert (result.applied, result.failed) == (2, 1)
        assert [unit.unit for unit in result.units] == ["true", "false", "true"]
        assert result.units[1].error is ErrorKind.TOOL_FAILED

    def test_escaping_path_is_a_file_error(self, config: PolyglotConfig, fake_processes: FakeProcesses) -> None:
        """Test paths outside the workspace are refused without failing a command."""
        repository = GitRepository(files={"../evil": "x", "ok.txt": "y"}, init_commands=["git init"])
        result = GitExecutor(config).execute(repository)

        assert result.ok is True
        assert (result.applied, result.failed) == (1, 0)
        assert result.details["files_created"] == 1
        assert result.details["file_errors"] == [{"path": "../evil", "error": "path escapes the workspace"}]


class TestShellExecutor:
    """Tests for ShellExecutor."""

    def test_preferred_shell_first(self) -> None:
        """Test binaries start with the configured shell."""
        config = load_config_from_dict({"shell": {"preferred": "zsh"}})
        assert ShellExecutor(config).binaries == ("zsh", "bash", "sh")
        assert ShellExecutor(PolyglotConfig()).binaries == ("bash", "sh")

    def test_runs_script_with_environment(
        self, config: PolyglotConfig, executable_doc: str, fake_processes: FakeProcesses
    ) -> None:
        """Test the merged script runs with the document environment."""
        fake_processes.queue(completed("hello from polyglot\n"))
        result = ShellExecutor(config).execute(parse(executable_doc, config))

        assert result.ok is True
        assert result.details == {"output": "hello from polyglot\n", "exit_code": 0, "shell": "bash"}
        command, kwargs = fake_processes.calls[0]
        assert command[:2] == ["bash", "-c"]
        assert kwargs["env"]["GREETING"] == "hello"  # type: ignore[index]

    def test_nonzero_exit(self, config: PolyglotConfig, executable_doc: str, fake_processes: FakeProcesses) -> None:
        """Test a failing script carries its exit code."""
        fake_processes.queue(completed("oops", code=2))
        result = ShellExecutor(config).execute(parse(executable_doc, config))
        assert result.error is ErrorKind.TOOL_FAILED
        assert result.details["exit_code"] == 2
        assert result.details["code"] == 2

    def test_timeout(self, config: PolyglotConfig, executable_doc: str, fake_processes: FakeProcesses) -> None:
        """Test a timeout maps to the timeout error kind."""
        fake_processes.queue(ProcessRun(ProcessOutcome.TIMEOUT, -1, "bash timed out after 300s"))
        result = ShellExecutor(config).execute(parse(executable_doc, config))
        assert result.error is ErrorKind.TIMEOUT


class TestSQLExecutor:
    """Tests for SQLExecutor."""

    def test_sqlite_statements(self, config: PolyglotConfig, sql_doc: str, fake_processes: FakeProcesses) -> None:
        """Test each statement is piped to sqlite3 on a shared scratch database."""
        result = SQLExecutor(config).execute(parse(sql_doc, config))

        assert result.ok is True
        assert result.details["executed"] == 3
        databases = {call[0][-1] for call in fake_processes.calls}
        assert len(databases) == 1
        assert databases.pop().endswith("polyglot.db")
        assert fake_processes.calls[1][1]["input"] == "INSERT INTO users (name) VALUES ('a;b');"

    def test_psql_command(self, sql_doc: str, fake_processes: FakeProcesses) -> None:
        """Test psql receives the statement with -c."""
        config = load_config_from_dict({"sql": {"client": "psql", "database": "app"}})
        SQLExecutor(config).execute(parse(sql_doc, config))
        command = fake_processes.calls[0][0]
        assert command[:2] == ["psql", "-X"]
        assert command[-4:] == ["-d", "app", "-c", "CREATE TABLE users (id INTEGER PRIMARY KEY, name TEXT);"]

    def test_mock_when_missing(self, config: PolyglotConfig, sql_doc: str, tools_absent: None) -> None:
        """Test statements are mocked per unit."""
        result = SQLExecutor(config).execute(parse(sql_doc, config))
        assert result.mock is True
        assert result.applied == 3

    def test_statement_label(self) -> None:
        """Test long statements are truncated to one line."""
        assert statement_label("SELECT 1;\nFROM x") == "SELECT 1;"
        assert len(statement_label("SELECT " + "x" * 100)) == 60


class TestNoopExecutor:
    """Tests for NoopExecutor."""

    def test_documentation_only(self, config: PolyglotConfig, plain_doc: str) -> None:
        """Test plain documents succeed without side effects."""
        result = NoopExecutor(config).execute(parse(plain_doc, config))
        assert result.ok is True
        assert result.details == {"message": "documentation only"}
        assert NoopExecutor(config).check_available() is True
