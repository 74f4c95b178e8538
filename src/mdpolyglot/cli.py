"""mdpolyglot CLI interface.

Commands:
- classify: Show a document's language, artifacts and metadata
- ast: Print the enhanced mdast tree as JSON
- sanitize: Strip every polyglot feature from a document
- transpile: Show the configuration for an explicit target
- run: Execute a document and optionally write a report
- check: Check the external tools the executors use
- init: Write a default configuration file

Global options:
- --config: Path to configuration file
- --verbose: Enable verbose output with timestamps
- --quiet: Suppress info messages
- --ci: JSON log output
- --version: Show version and exit
"""

import json
from pathlib import Path
from typing import Annotated, Any

import typer

from mdpolyglot import __version__
from mdpolyglot.config import PolyglotConfig, create_default_config, load_config
from mdpolyglot.models.ast import strip_positions
from mdpolyglot.models.polyglot import Target
from mdpolyglot.pipeline import PolyglotPipeline
from mdpolyglot.utils.logging import configure_from_cli, get_logger

app = typer.Typer(
    name="mdpolyglot",
    help="Treat Markdown documents as executable infrastructure artifacts",
    add_completion=False,
    no_args_is_help=True,
)

# Global state
_config: PolyglotConfig | None = None
_logger = get_logger()

DocumentArg = Annotated[
    Path,
    typer.Argument(help="Markdown document", exists=True, dir_okay=False, readable=True),
]


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"mdpolyglot {__version__}")
        raise typer.Exit()


def _pipeline() -> PolyglotPipeline:
    return PolyglotPipeline(_config)


def _read(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        _logger.error(f"Cannot read {path}: {e}")
        raise typer.Exit(1) from e


def _echo_json(data: Any) -> None:
    typer.echo(json.dumps(data, indent=2, default=str, ensure_ascii=False))


@app.callback()
def main(
    config: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Path to configuration file",
            exists=True,
            dir_okay=False,
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable verbose output with timestamps"),
    ] = False,
    quiet: Annotated[
        bool,
        typer.Option("--quiet", "-q", help="Suppress info messages (warnings and errors only)"),
    ] = False,
    ci: Annotated[
        bool,
        typer.Option("--ci", help="Enable CI mode with JSON log output"),
    ] = False,
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit",
        ),
    ] = False,
) -> None:
    """mdpolyglot - Markdown that speaks many languages.

    Classify Markdown documents, extract the Dockerfiles, Terraform,
    Kubernetes manifests, SQL, scripts and files they carry, and run them.
    """
    global _config

    try:
        _config = load_config(config_path=config)
    except FileNotFoundError as e:
        configure_from_cli(verbose=verbose, quiet=quiet, ci=ci)
        _logger.error(str(e))
        raise typer.Exit(1) from e
    except ValueError as e:
        configure_from_cli(verbose=verbose, quiet=quiet, ci=ci)
        _logger.error(f"Failed to load config: {e}")
        raise typer.Exit(1) from e

    configure_from_cli(verbose=verbose, quiet=quiet, ci=ci or _config.ci.json_output)
    if _config.config_path:
        _logger.debug(f"Loaded config from: {_config.config_path}")


# =============================================================================
# Inspection commands
# =============================================================================


@app.command()
def classify(
    file: DocumentArg,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON")] = False,
) -> None:
    """Show a document's language, artifacts and metadata."""
    polyglot = _pipeline().parse(_read(file))

    if json_output:
        _echo_json(polyglot.to_dict(include_ast=False))
        return

    typer.echo(f"Language: {polyglot.language.value}")
    typer.echo(f"Artifacts: {polyglot.artifact_count}")
    for artifact in polyglot.artifacts:
        where = f" -> {artifact.location}" if artifact.location else ""
        kind = f" ({artifact.kind})" if artifact.kind else ""
        flag = " [executable]" if artifact.executable else ""
        typer.echo(f"  • {artifact.type.value}{kind}{where} @ line {artifact.line}{flag}")
    if polyglot.metadata.get("type"):
        typer.echo(f"Type: {polyglot.metadata['type']}/{polyglot.metadata.get('subtype', '')}")
    for payload in polyglot.metadata.get("hidden", []):
        typer.echo(f"Hidden payload at offset {payload['offset']}: {payload.get('text', '<binary>')}")


@app.command(name="ast")
def ast_command(
    file: DocumentArg,
    positions: Annotated[
        bool,
        typer.Option("--positions/--no-positions", help="Include source positions"),
    ] = True,
) -> None:
    """Print the enhanced mdast tree as JSON."""
    tree = _pipeline().parse(_read(file)).ast.to_dict()
    _echo_json(tree if positions else strip_positions(tree))


@app.command()
def sanitize(
    file: DocumentArg,
    output: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Write to file instead of stdout", dir_okay=False),
    ] = None,
) -> None:
    """Strip directives, zero-width characters and content-hash links."""
    from mdpolyglot.analyzers.sanitizer import sanitize as sanitize_text

    cleaned = sanitize_text(_read(file))
    if output is None:
        typer.echo(cleaned, nl=False)
        return

    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(cleaned, encoding="utf-8")
    _logger.info(f"Wrote sanitized document to {output}")


@app.command()
def transpile(
    file: DocumentArg,
    target: Annotated[Target, typer.Option("--target", "-t", help="Transpilation target")],
) -> None:
    """Show the configuration a target tool would receive.

    Exit codes:
        0: Transpiled
        1: The document has no artifact for the target
    """
    pipeline = _pipeline()
    result = pipeline.transpile(pipeline.parse(_read(file)), target)
    _echo_json(result.to_dict())
    if not result.ok:
        raise typer.Exit(1)


# =============================================================================
# run command
# =============================================================================


@app.command()
def run(
    file: DocumentArg,
    report: Annotated[
        Path | None,
        typer.Option("--report", "-r", help="Write a report to this path", dir_okay=False),
    ] = None,
    format: Annotated[
        str | None,
        typer.Option("--format", "-f", help="Report format: markdown or json"),
    ] = None,
    dry_run: Annotated[
        bool,
        typer.Option("--dry-run", help="Transpile only; do not run any tool"),
    ] = False,
    json_output: Annotated[bool, typer.Option("--json", help="Print the result as JSON")] = False,
) -> None:
    """Execute a document with the executor for its language.

    Exit codes:
        0: Success (including mock results for missing tools)
        1: Execution failed, or a batch had failed units
    """
    from mdpolyglot.templates.renderer import ReportEntry, ReportRenderer

    config = _config or PolyglotConfig()
    report_format = format or config.output.format
    if report_format not in {"markdown", "json"}:
        _logger.error(f"Invalid format: {report_format}. Use 'markdown' or 'json'")
        raise typer.Exit(1)

    pipeline = _pipeline()
    polyglot = pipeline.parse(_read(file))
    executor = pipeline.registry.get_executor(polyglot.language)

    if dry_run:
        plan: dict[str, Any] = {
            "language": polyglot.language.value,
            "executor": executor.name,
            "tool_available": executor.check_available(),
        }
        if executor.target is not None:
            plan["transpiled"] = pipeline.transpile(polyglot, executor.target).to_dict()
        _echo_json(plan)
        return

    result = pipeline.execute(polyglot)

    if report is not None:
        if report_format == "json":
            report.parent.mkdir(parents=True, exist_ok=True)
            payload = {"document_id": str(file), "language": polyglot.language.value, **result.to_dict()}
            report.write_text(json.dumps(payload, indent=2, default=str), encoding="utf-8")
            _logger.info(f"Wrote report to {report}")
        else:
            entry = ReportEntry(str(file), result, polyglot.language.value)
            ReportRenderer().render_to_file([entry], report)

    if json_output:
        _echo_json(result.to_dict())
    else:
        _print_result(result.to_dict())

    failed = not result.ok or result.failed > 0
    if failed and config.ci.fail_on_error:
        raise typer.Exit(1)


def _print_result(data: dict[str, Any]) -> None:
    details = data["details"]
    if not data["ok"]:
        typer.echo(f"❌ {data['target']}: {data['error']} (code {details.get('code')})")
    elif data["mock"]:
        typer.echo(f"⚠️  {data['target']}: mock result")
        typer.echo(f"   └─ {details.get('note', '')}")
    else:
        typer.echo(f"✅ {data['target']}: ok")

    if "results" in details:
        typer.echo(f"   applied: {details['applied']}, failed: {details['failed']}")
        for unit in details["results"]:
            status = "✅" if unit["ok"] else "❌"
            typer.echo(f"   {status} {unit['unit']}")
    for key in ("image", "message", "next_step"):
        if details.get(key):
            typer.echo(f"   {key}: {details[key]}")

    output = details.get("output") or details.get("plan")
    if output:
        typer.echo()
        typer.echo(str(output).rstrip("\n"))


# =============================================================================
# check command
# =============================================================================


@app.command()
def check(
    json_output: Annotated[bool, typer.Option("--json", help="Output results as JSON")] = False,
) -> None:
    """Check the external tools used by the executors.

    Exit codes:
        0: All tools available
        1: A tool is missing and mock fallback is disabled
        2: Some tools missing (their targets run in mock mode)
    """
    from mdpolyglot.utils.preflight import PreflightChecker

    result = PreflightChecker().check_all(_config)

    if json_output:
        _echo_json(result.to_dict())
    else:
        typer.echo("\n🔍 Preflight Check Results\n")

        for check_result in result.checks:
            status = "✅" if check_result.available else "❌"
            version_str = f" ({check_result.version})" if check_result.version else ""
            typer.echo(f"  {status} {check_result.name}{version_str} [{check_result.target}]")
            if check_result.available and check_result.path:
                typer.echo(f"     └─ {check_result.path}")
            elif not check_result.available:
                typer.echo(f"     └─ {check_result.message}")

        typer.echo()

        if result.errors:
            typer.echo("❌ Preflight check FAILED")
            for error in result.errors:
                typer.echo(f"   • {error}")
        elif result.warnings:
            typer.echo("⚠️  Some tools are missing")
            for warning in result.warnings:
                typer.echo(f"   • {warning}")
        else:
            typer.echo("✅ All tools available")

    if not result.success:
        raise typer.Exit(1)
    if not result.all_available:
        raise typer.Exit(2)


# =============================================================================
# init command
# =============================================================================


@app.command()
def init(
    force: Annotated[bool, typer.Option("--force", help="Overwrite existing config")] = False,
) -> None:
    """Write a default ``.mdpolyglot/config.yaml``."""
    config_file = Path(".mdpolyglot") / "config.yaml"

    if config_file.exists() and not force:
        _logger.error(f"Config already exists: {config_file}")
        _logger.info("Use --force to overwrite")
        raise typer.Exit(1)

    config_file.parent.mkdir(exist_ok=True)
    config_file.write_text(create_default_config(), encoding="utf-8")
    typer.echo(f"✅ Created {config_file}")


if __name__ == "__main__":
    app()
