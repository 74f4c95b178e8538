"""Polyglot pipeline orchestrator.

raw text -> Tokenizer -> AST Builder -> Classifier (independent, raw text)
         -> AST Enhancer -> {Sanitizer | Transpiler(target) -> Executor(target)}

Parsing, classification and transpilation are synchronous pure
computations. Execution blocks on child processes; callers parallelize per
document if they need to.
"""

import logging

from mdpolyglot.analyzers.classifier import Classifier
from mdpolyglot.analyzers.classifier import is_polyglot as _is_polyglot
from mdpolyglot.analyzers.sanitizer import sanitize as _sanitize
from mdpolyglot.collaborators import ContentProvider, ResultSink
from mdpolyglot.config import PolyglotConfig
from mdpolyglot.executors.registry import ExecutorRegistry
from mdpolyglot.models.polyglot import Polyglot, Target
from mdpolyglot.models.results import ErrorKind, ExecutionResult
from mdpolyglot.parser import build_ast, enhance, tokenize
from mdpolyglot.transpilers import TranspileDefaults, TranspileResult, transpile_artifacts

logger = logging.getLogger(__name__)

PIPELINE_TARGET = "pipeline"


class PolyglotPipeline:
    """Parses, transpiles and executes polyglot Markdown documents.

    Usage:
        pipeline = PolyglotPipeline(config)
        polyglot = pipeline.parse(markdown)
        result = pipeline.execute(polyglot)
    """

    def __init__(self, config: PolyglotConfig | None = None) -> None:
        """Initialize the pipeline.

        Args:
            config: Configuration (uses defaults if None)
        """
        self.config = config or PolyglotConfig()
        self._classifier = Classifier()
        self._registry = ExecutorRegistry(self.config)

    @property
    def registry(self) -> ExecutorRegistry:
        """Executor registry bound to this pipeline's configuration."""
        return self._registry

    def parse(self, text: str) -> Polyglot:
        """Classify a document and build its enhanced syntax tree.

        Args:
            text: Raw Markdown

        Returns:
            Polyglot with language, artifacts, metadata and AST
        """
        root = build_ast(tokenize(text))
        classification = self._classifier.classify(text)
        enhance(root, classification.language, classification.artifacts, classification.metadata)

        logger.info(
            "Parsed document: language=%s, %d artifact(s)",
            classification.language.value,
            len(classification.artifacts),
        )
        return Polyglot(
            language=classification.language,
            artifacts=classification.artifacts,
            ast=root,
            metadata=classification.metadata,
            source=text,
        )

    def transpile(self, polyglot: Polyglot, target: Target) -> TranspileResult:
        """Transpile a parsed document for an explicit target."""
        return transpile_artifacts(
            target,
            polyglot.artifacts,
            polyglot.metadata,
            TranspileDefaults.from_config(self.config),
        )

    def execute(self, polyglot: Polyglot) -> ExecutionResult:
        """Run a parsed document with the executor for its language."""
        executor = self._registry.get_executor(polyglot.language)
        logger.info("Executing %s document with %s executor", polyglot.language.value, executor.name)
        return executor.execute(polyglot)

    def process(
        self,
        document_id: str,
        provider: ContentProvider,
        sink: ResultSink | None = None,
    ) -> ExecutionResult:
        """Fetch, parse, execute and store one document.

        Args:
            document_id: Identifier understood by the provider
            provider: Source of the raw text
            sink: Destination for the result (optional)

        Returns:
            ExecutionResult; a missing document yields a ``not_found`` failure
        """
        try:
            text = provider.get_document(document_id)
            if text is None:
                logger.error("Document not found: %s", document_id)
                result = ExecutionResult.failure(
                    PIPELINE_TARGET, ErrorKind.NOT_FOUND, f"document not found: {document_id}"
                )
            else:
                result = self.execute(self.parse(text))
        except Exception as e:
            logger.exception("Processing %s failed unexpectedly", document_id)
            result = ExecutionResult.failure(PIPELINE_TARGET, ErrorKind.UNHANDLED, str(e))

        if sink is not None and not sink.store_result(document_id, result):
            logger.warning("Result for %s was not stored", document_id)
        return result


# =============================================================================
# Module-level convenience API
# =============================================================================


def parse(text: str) -> Polyglot:
    """Parse a document with the default configuration."""
    return PolyglotPipeline().parse(text)


def is_polyglot(text: str) -> bool:
    """Cheap check: does the document carry anything beyond plain Markdown?"""
    return _is_polyglot(text)


def sanitize(text: str) -> str:
    """Strip every polyglot feature from a document."""
    return _sanitize(text)


def transpile(polyglot: Polyglot, target: Target | str) -> TranspileResult:
    """Transpile a parsed document for a target (enum or its value).

    Raises:
        ValueError: If ``target`` is not a known target name
    """
    return PolyglotPipeline().transpile(polyglot, Target(target))


def execute(polyglot: Polyglot, config: PolyglotConfig | None = None) -> ExecutionResult:
    """Execute a parsed document."""
    return PolyglotPipeline(config).execute(polyglot)
