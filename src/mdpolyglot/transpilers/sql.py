"""SQL transpiler: ``sql`` blocks become a list of single statements."""

from typing import Any

from mdpolyglot.models.polyglot import Artifact, ArtifactType, Target
from mdpolyglot.transpilers.base import (
    SQLBatch,
    TranspileDefaults,
    TranspileError,
    document_params,
)


def split_statements(sql: str) -> list[str]:
    """Split on ``;`` outside quotes and ``--`` comments.

    Empty statements are dropped and the terminating ``;`` is kept.
    """
    statements: list[str] = []
    current: list[str] = []
    quote: str | None = None
    in_comment = False

    for i, ch in enumerate(sql):
        if in_comment:
            current.append(ch)
            if ch == "\n":
                in_comment = False
            continue
        if quote is not None:
            current.append(ch)
            if ch == quote:
                quote = None
            continue

        if ch in ("'", '"'):
            quote = ch
        elif ch == "-" and sql.startswith("--", i):
            in_comment = True
        elif ch == ";":
            statement = "".join(current).strip()
            if statement:
                statements.append(statement + ";")
            current = []
            continue
        current.append(ch)

    tail = "".join(current).strip()
    if tail and not _only_comments(tail):
        statements.append(tail)
    return statements


def _only_comments(text: str) -> bool:
    return all(not line.strip() or line.strip().startswith("--") for line in text.splitlines())


def transpile_sql(
    artifacts: list[Artifact],
    metadata: dict[str, Any],
    defaults: TranspileDefaults,
) -> SQLBatch | TranspileError:
    """Split every SQL block into statements, in document order."""
    blocks = [a for a in artifacts if a.type is ArtifactType.SQL]
    if not blocks:
        return TranspileError(Target.SQL, "no_sql_found")

    statements = [s for block in blocks for s in split_statements(block.content)]
    if not statements:
        return TranspileError(Target.SQL, "no_statements_found")

    database = document_params(metadata).get("database") or defaults.database
    return SQLBatch(statements=statements, database=str(database) if database else None)
