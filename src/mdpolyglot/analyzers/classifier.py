"""Metadata extractor and language classifier.

Decides the dominant ``language`` of a document and extracts its artifacts
from the raw text. Detection rules, in priority order (first match wins for
the language, every match contributes artifacts):

1. ``dockerfile`` fence                              -> DOCKERFILE
2. ``terraform`` / ``hcl`` fence                     -> TERRAFORM
3. fence whose YAML has ``apiVersion`` and ``kind``  -> KUBERNETES
4. ``polyglot:executable`` directive + shell fence   -> EXECUTABLE
5. ``file:<path>`` fences                            -> GIT
6. ``sql`` fence                                     -> SQL
7. zero-width payload: sets ``metadata["type"]`` only
8. otherwise                                         -> NONE
"""

import logging
import re
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

import yaml

from mdpolyglot.analyzers.scanners import (
    POLYGLOT,
    ContentLink,
    Directive,
    FencedBlock,
    scan_content_links,
    scan_directives,
    scan_fences,
    scan_zero_width,
)
from mdpolyglot.analyzers.stego import BOM, ZERO_WIDTH_CHARS, HiddenPayload
from mdpolyglot.models.polyglot import Artifact, ArtifactType, Language

logger = logging.getLogger(__name__)

DOCKERFILE_LANGS = frozenset({"dockerfile"})
TERRAFORM_LANGS = frozenset({"terraform", "hcl"})
SHELL_LANGS = frozenset({"bash", "sh", "shell"})
SQL_LANGS = frozenset({"sql"})

# Fences claimed by another detector are never considered Kubernetes YAML
NON_YAML_LANGS = DOCKERFILE_LANGS | TERRAFORM_LANGS | SHELL_LANGS | SQL_LANGS

EXECUTABLE_DIRECTIVE = "executable"

SQL_OPERATION_RE = re.compile(
    r"^\s*(CREATE|ALTER|DROP|INSERT|UPDATE|DELETE|SELECT|WITH)\b", re.IGNORECASE
)

_QUICK_DIRECTIVE_RE = re.compile(r"<!--\s*(?:polyglot|kyozo):")
_QUICK_FENCE_RE = re.compile(
    r"^ {0,3}(?:`{3,}|~{3,})[ \t]*(?:(?:dockerfile|terraform|hcl|sql)(?=\s|$)|file:\S)",
    re.IGNORECASE | re.MULTILINE,
)


@dataclass
class Classification:
    """Result of classifying one document.

    Attributes:
        language: Dominant classification
        artifacts: Extracted artifacts from every detector that fired
        metadata: Directive, link and hidden-payload metadata
    """

    language: Language
    artifacts: list[Artifact] = field(default_factory=list)
    metadata: dict[str, Any] = field(default_factory=dict)


# =============================================================================
# Detectors
# =============================================================================


def detect_dockerfile(fences: list[FencedBlock], directives: list[Directive]) -> list[Artifact]:
    """Rule 1: fences tagged ``dockerfile``."""
    return [
        Artifact(type=ArtifactType.DOCKERFILE, content=f.content, line=f.line)
        for f in fences
        if f.lang in DOCKERFILE_LANGS
    ]


def detect_terraform(fences: list[FencedBlock], directives: list[Directive]) -> list[Artifact]:
    """Rule 2: fences tagged ``terraform`` (or ``hcl``)."""
    return [
        Artifact(type=ArtifactType.TERRAFORM, content=f.content.strip(), line=f.line)
        for f in fences
        if f.lang in TERRAFORM_LANGS
    ]


def kubernetes_kind(content: str) -> str | None:
    """Return the ``kind`` of the first YAML document that is a manifest.

    A manifest is a mapping carrying both ``apiVersion`` and ``kind``.
    Content that is not valid YAML is not a manifest.
    """
    try:
        documents = list(yaml.safe_load_all(content))
    except yaml.YAMLError:
        return None

    for document in documents:
        if isinstance(document, dict) and "apiVersion" in document and "kind" in document:
            return str(document["kind"])
    return None


def detect_kubernetes(fences: list[FencedBlock], directives: list[Directive]) -> list[Artifact]:
    """Rule 3: fences whose content parses as a Kubernetes manifest."""
    artifacts = []
    for fence in fences:
        if fence.lang in NON_YAML_LANGS or fence.file_path is not None:
            continue
        if "apiVersion" not in fence.content or "kind" not in fence.content:
            continue
        kind = kubernetes_kind(fence.content)
        if kind is not None:
            artifacts.append(
                Artifact(
                    type=ArtifactType.KUBERNETES,
                    content=fence.content.strip(),
                    line=fence.line,
                    kind=kind.lower(),
                )
            )
    return artifacts


def declares_executable(directives: list[Directive]) -> bool:
    """Whether a ``polyglot:executable`` (or ``polyglot:type=executable``) is present."""
    for directive in directives:
        if directive.namespace != POLYGLOT:
            continue
        if directive.name == EXECUTABLE_DIRECTIVE or directive.value == EXECUTABLE_DIRECTIVE:
            return True
    return False


def detect_executable(fences: list[FencedBlock], directives: list[Directive]) -> list[Artifact]:
    """Rule 4: executable directive co-occurring with shell fences.

    ``bash``/``sh``/``shell`` fences become BASH artifacts. Untagged fences
    that start with a shebang become EXECUTABLE artifacts.
    """
    if not declares_executable(directives):
        return []

    artifacts = []
    for fence in fences:
        if fence.lang in SHELL_LANGS:
            artifact_type = ArtifactType.BASH
        elif not fence.lang and fence.content.startswith("#!"):
            artifact_type = ArtifactType.EXECUTABLE
        else:
            continue
        artifacts.append(
            Artifact(
                type=artifact_type,
                content=fence.content.strip(),
                executable=True,
                line=fence.line,
            )
        )
    return artifacts


def detect_files(fences: list[FencedBlock], directives: list[Directive]) -> list[Artifact]:
    """Rule 5: ``file:<path>`` fences, one artifact per block."""
    return [
        Artifact(type=ArtifactType.FILE, content=f.content, location=f.file_path, line=f.line)
        for f in fences
        if f.file_path is not None
    ]


def sql_operation(sql: str) -> str:
    """Return the leading SQL verb in lower case, or "unknown"."""
    match = SQL_OPERATION_RE.match(sql)
    return match.group(1).lower() if match else "unknown"


def detect_sql(fences: list[FencedBlock], directives: list[Directive]) -> list[Artifact]:
    """Rule 6: fences tagged ``sql``."""
    artifacts = []
    for fence in fences:
        if fence.lang not in SQL_LANGS:
            continue
        content = fence.content.strip()
        artifacts.append(
            Artifact(
                type=ArtifactType.SQL,
                content=content,
                executable=True,
                line=fence.line,
                kind=sql_operation(content),
            )
        )
    return artifacts


Detector = Callable[[list[FencedBlock], list[Directive]], list[Artifact]]

# Priority order: the first detector producing artifacts decides the language
DETECTORS: list[tuple[Language, Detector]] = [
    (Language.DOCKERFILE, detect_dockerfile),
    (Language.TERRAFORM, detect_terraform),
    (Language.KUBERNETES, detect_kubernetes),
    (Language.EXECUTABLE, detect_executable),
    (Language.GIT, detect_files),
    (Language.SQL, detect_sql),
]


# =============================================================================
# Metadata
# =============================================================================


def build_metadata(
    directives: list[Directive],
    payloads: list[HiddenPayload],
    links: list[ContentLink],
) -> dict[str, Any]:
    """Merge scanner output into the flat metadata map.

    Keys:
        type / subtype: "polyglot" or "kyozo" plus the first directive name,
            or "hidden_payload"/"zero_width" when only a payload was found
        directives: All directives, serialized
        params: Merged polyglot ``key=value`` parameters
        environment: ``polyglot:env`` variables for the shell executor
        terraform_vars: ``polyglot:tfvar`` variables for Terraform
        kyozo: One entry per kyozo directive
        content_links: Content-addressed links
        hidden: Decoded zero-width payloads
    """
    metadata: dict[str, Any] = {}

    if directives:
        first = directives[0]
        metadata["type"] = first.namespace
        metadata["subtype"] = first.name
        metadata["directives"] = [d.to_dict() for d in directives]

    params: dict[str, Any] = {}
    environment: dict[str, str] = {}
    terraform_vars: dict[str, str] = {}
    kyozo: list[dict[str, Any]] = []

    for directive in directives:
        if directive.namespace == POLYGLOT:
            if directive.name == "env":
                environment.update({k: str(v) for k, v in directive.params.items()})
            elif directive.name == "tfvar":
                terraform_vars.update({k: str(v) for k, v in directive.params.items()})
            else:
                if directive.value is not None:
                    params[directive.name] = directive.value
                params.update(directive.params)
        else:
            kyozo.append({"directive": directive.name, "params": directive.params})

    if params:
        metadata["params"] = params
    if environment:
        metadata["environment"] = environment
    if terraform_vars:
        metadata["terraform_vars"] = terraform_vars
    if kyozo:
        metadata["kyozo"] = kyozo
    if links:
        metadata["content_links"] = [link.to_dict() for link in links]
    if payloads:
        metadata["hidden"] = [p.to_dict() for p in payloads]
        metadata.setdefault("type", "hidden_payload")
        metadata.setdefault("subtype", "zero_width")

    return metadata


# =============================================================================
# Entry points
# =============================================================================


class Classifier:
    """Runs the scanning passes and the prioritized detectors.

    Usage:
        classification = Classifier().classify(markdown)
    """

    def __init__(self, detectors: list[tuple[Language, Detector]] | None = None) -> None:
        """Initialize classifier.

        Args:
            detectors: Prioritized detectors (defaults to DETECTORS)
        """
        self._detectors = detectors if detectors is not None else DETECTORS

    def classify(self, text: str) -> Classification:
        """Classify a document.

        Args:
            text: Raw Markdown text

        Returns:
            Classification with language, artifacts and metadata
        """
        fences = scan_fences(text)
        directives = scan_directives(text)

        language = Language.NONE
        artifacts: list[Artifact] = []
        for candidate, detector in self._detectors:
            found = detector(fences, directives)
            if found and language is Language.NONE:
                language = candidate
            artifacts.extend(found)

        metadata = build_metadata(directives, scan_zero_width(text), scan_content_links(text))

        logger.debug(
            "Classified document as %s (%d artifacts, %d fences, %d directives)",
            language.value,
            len(artifacts),
            len(fences),
            len(directives),
        )
        return Classification(language=language, artifacts=artifacts, metadata=metadata)


def classify(text: str) -> Classification:
    """Classify a document (convenience wrapper)."""
    return Classifier().classify(text)


def is_polyglot(text: str) -> bool:
    """Cheap pre-check: does the document carry anything beyond plain Markdown?

    True for any of the detection rules, for any polyglot/kyozo directive and
    for zero-width characters. YAML is only parsed when a fence mentions both
    ``apiVersion`` and ``kind``.
    """
    if _QUICK_FENCE_RE.search(text) or _QUICK_DIRECTIVE_RE.search(text):
        return True

    # A leading byte-order mark is not a payload
    body = text[1:] if text.startswith(BOM) else text
    if any(ch in ZERO_WIDTH_CHARS for ch in body):
        return True

    if "apiVersion" in text and "kind" in text:
        return bool(detect_kubernetes(scan_fences(text), []))

    return False
