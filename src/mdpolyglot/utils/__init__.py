"""mdpolyglot utility modules.

- logging: Standardized logging with human/verbose/JSON modes
- preflight: External tool availability checks
"""

from mdpolyglot.utils.logging import configure_from_cli, get_logger, setup_logging
from mdpolyglot.utils.preflight import PreflightChecker, PreflightResult, ToolCheck

__all__ = [
    "configure_from_cli",
    "get_logger",
    "setup_logging",
    "PreflightChecker",
    "PreflightResult",
    "ToolCheck",
]
