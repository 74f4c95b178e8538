"""Bash transpiler: executable shell blocks merge into one script."""

from typing import Any

from mdpolyglot.models.polyglot import Artifact, ArtifactType, Target
from mdpolyglot.transpilers.base import (
    DEFAULT_SHEBANG,
    ShellScript,
    TranspileDefaults,
    TranspileError,
)


def split_shebang(content: str) -> tuple[str | None, str]:
    """Separate a leading ``#!`` line from the script body."""
    if content.startswith("#!"):
        first, _, rest = content.partition("\n")
        return first.strip(), rest
    return None, content


def transpile_bash(
    artifacts: list[Artifact],
    metadata: dict[str, Any],
    defaults: TranspileDefaults,
) -> ShellScript | TranspileError:
    """Merge ``bash``/``executable`` artifacts in document order.

    The shebang of the first block is kept (``#!/bin/bash`` otherwise);
    ``polyglot:env`` variables become the script environment.
    """
    scripts = [
        a for a in artifacts if a.type in (ArtifactType.BASH, ArtifactType.EXECUTABLE)
    ]
    if not scripts:
        return TranspileError(Target.BASH, "no_executable_found")

    shebang, _ = split_shebang(scripts[0].content)
    bodies = [split_shebang(script.content)[1].strip("\n") for script in scripts]
    environment = {str(k): str(v) for k, v in (metadata.get("environment") or {}).items()}
    return ShellScript(
        script="\n\n".join(bodies),
        shebang=shebang or DEFAULT_SHEBANG,
        environment=environment,
    )
