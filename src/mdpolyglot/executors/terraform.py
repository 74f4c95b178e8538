"""Terraform executor: ``terraform init`` then ``terraform plan``."""

import logging

from mdpolyglot.executors.base import Executor
from mdpolyglot.models.polyglot import Target
from mdpolyglot.models.results import ExecutionResult
from mdpolyglot.transpilers.base import TerraformPlan

logger = logging.getLogger(__name__)

CONFIGURATION_FILE = "main.tf"
INIT_COMMAND = ["terraform", "init", "-input=false", "-no-color"]


class TerraformExecutor(Executor):
    """Plans (never applies) the document's Terraform configuration."""

    name = "terraform"
    target = Target.TERRAFORM
    binaries = ("terraform",)

    def run(self, transpiled: TerraformPlan) -> ExecutionResult:
        """Initialize and plan in a fresh directory holding ``main.tf``.

        Args:
            transpiled: Merged configuration and commands

        Returns:
            ExecutionResult with ``plan`` and ``next_step``; failures carry
            the ``step`` (init or plan) that failed
        """
        next_step = " ".join(transpiled.apply_command)
        if not self.check_available():
            return self.mock(
                " ".join(transpiled.plan_command),
                plan="Terraform not installed - would execute: terraform plan",
                next_step="Install terraform to execute",
            )

        plan_command = [
            *transpiled.plan_command,
            "-no-color",
            *self.config.terraform.plan_args,
        ]
        with self.workspace() as directory:
            (directory / CONFIGURATION_FILE).write_text(transpiled.configuration)

            init = self.run_tool(INIT_COMMAND, cwd=directory)
            if not init.ok:
                return init.to_failure(self.name, step="init")

            plan = self.run_tool(plan_command, cwd=directory)

        if not plan.ok:
            return plan.to_failure(self.name, step="plan")

        return ExecutionResult.success(self.name, plan=plan.output, next_step=next_step)
