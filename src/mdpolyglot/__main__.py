"""Entry point for running mdpolyglot as a module.

Usage:
    python -m mdpolyglot [command] [options]

Example:
    python -m mdpolyglot classify README.md
    python -m mdpolyglot run deploy.md --report report.md
"""

from mdpolyglot.cli import app

if __name__ == "__main__":
    app()
