"""mdpolyglot executors - run transpiled configuration against real tools.

Executors:
- Docker: docker build
- Terraform: terraform init + plan
- Kubernetes: kubectl apply, one manifest at a time
- Git: file materialization + git init/add/commit
- Shell: bash -c (sh -c fallback)
- SQL: sqlite3 / psql, one statement at a time
- Noop: plain documentation
"""

from mdpolyglot.executors.base import (
    Executor,
    ProcessOutcome,
    ProcessRun,
    run_process,
)
from mdpolyglot.executors.docker import DockerExecutor
from mdpolyglot.executors.git import GitExecutor
from mdpolyglot.executors.kubernetes import KubernetesExecutor
from mdpolyglot.executors.noop import NoopExecutor
from mdpolyglot.executors.registry import ExecutorRegistry, executor_class, target_for
from mdpolyglot.executors.shell import ShellExecutor
from mdpolyglot.executors.sql import SQLExecutor
from mdpolyglot.executors.terraform import TerraformExecutor
from mdpolyglot.executors.workspace import WorkspaceAllocator

__all__ = [
    "DockerExecutor",
    "Executor",
    "ExecutorRegistry",
    "GitExecutor",
    "KubernetesExecutor",
    "NoopExecutor",
    "ProcessOutcome",
    "ProcessRun",
    "SQLExecutor",
    "ShellExecutor",
    "TerraformExecutor",
    "WorkspaceAllocator",
    "executor_class",
    "run_process",
    "target_for",
]
