# ABOUTME: Validate command for deployment plans
# ABOUTME: Loads and checks a plan without calling any remote service

"""Validate command - Check a deployment plan."""

from cleo.commands.command import Command
from cleo.helpers import argument
from rich.console import Console
from rich.table import Table

from cloudformation_deploy.audit import MemoryAuditLog
from cloudformation_deploy.config import DeploymentPlan
from cloudformation_deploy.engine.conditions import parse_region
from cloudformation_deploy.errors import DeployError


class ValidateCommand(Command):
    name = "validate"
    description = "Validate a deployment plan without deploying it"

    arguments = [argument("plan", description="Path to the deployment plan (YAML or JSON)")]

    def handle(self) -> int:
        """Execute the validate command."""
        console = Console()
        audit = MemoryAuditLog()

        try:
            plan = DeploymentPlan.load(self.argument("plan"))
            for note in plan.validate():
                audit.write(note)
            # Region names in gates are checked here rather than mid-run
            for unit in [plan.master] + [stack for group in plan.secondary_stack_groups for stack in group.stacks]:
                for region in (unit.region.require, unit.region.exclude):
                    if region is not None:
                        parse_region(region)
        except DeployError as e:
            console.print(f"[red]✗[/red] Invalid plan: {e}")
            return 1

        table = Table(title="Deployment sequence", show_header=True)
        table.add_column("#", style="dim")
        table.add_column("Stack", style="cyan")
        table.add_column("Parameter file")
        table.add_column("Mode")

        for position, parameter_file in enumerate(plan.stack_parameter_file_paths):
            master = plan.master
            table.add_row(str(position + 1), master.stack_name, parameter_file, _mode(master))
            if plan.secondary_stack_groups:
                for stack in plan.secondary_stack_groups[position].stacks:
                    name = stack.stack_name or f"{stack.stack_name_prefix}-<generated>"
                    table.add_row("", f"  {name}", stack.parameter_file_path, _mode(stack))

        console.print(table)
        for line in audit.lines:
            console.print(f"[dim]{line}[/dim]")
        console.print("\n[green]✓[/green] Plan is valid")
        return 0


def _mode(unit) -> str:
    mode = "read-only" if unit.read_only else "deploy"
    if unit.condition:
        mode += f" if {unit.condition}"
    if unit.region.require:
        mode += f" in {unit.region.require}"
    if unit.region.exclude:
        mode += f" outside {unit.region.exclude}"
    return mode
