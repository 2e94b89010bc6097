# ABOUTME: Deploy command for running a deployment plan
# ABOUTME: Creates or updates the master stack and its secondary stack groups

"""Deploy command - Run a deployment plan against AWS."""

from cleo.commands.command import Command
from cleo.helpers import argument, option
from rich.console import Console
from rich.panel import Panel

from cloudformation_deploy.audit import AuditLog
from cloudformation_deploy.aws.common import effective_region
from cloudformation_deploy.aws.factory import Boto3ClientFactory
from cloudformation_deploy.cli.utils.console import configure_logging, outputs_table
from cloudformation_deploy.config import DeploymentPlan
from cloudformation_deploy.engine.orchestrator import DeploymentOrchestrator
from cloudformation_deploy.errors import DeployError
from cloudformation_deploy.runner import SubprocessCommandRunner


class DeployCommand(Command):
    name = "deploy"
    description = "Deploy a master stack and its secondary stack groups"

    arguments = [argument("plan", description="Path to the deployment plan (YAML or JSON)")]

    options = [
        option("region", description="Region to deploy to (default: provider chain region)", flag=False),
        option("audit-dir", description="Directory for audit.txt", flag=False),
        option("role-arn", description="Role to assume for the whole run", flag=False),
    ]

    def handle(self) -> int:
        """Execute the deploy command."""
        console = Console()
        configure_logging(console, self.io.is_verbose())

        try:
            plan = DeploymentPlan.load(self.argument("plan"))
        except DeployError as e:
            console.print(f"[red]Error: {e}[/red]")
            return 1

        settings = plan.settings
        if self.option("region"):
            settings.region = self.option("region")
        if self.option("audit-dir"):
            settings.audit_dir = self.option("audit-dir")
        if self.option("role-arn"):
            settings.role_arn = self.option("role-arn")

        region = effective_region(settings.region)

        console.print(
            Panel.fit(
                f"[bold]Deploying {plan.master.stack_name}[/bold]\n\n"
                f"Region: [cyan]{region}[/cyan]\n"
                f"Secondary stack groups: [cyan]{len(plan.secondary_stack_groups)}[/cyan]\n"
                f"Audit log: [cyan]{settings.audit_dir}/{AuditLog.FILE_NAME}[/cyan]",
                border_style="blue",
                padding=(1, 2),
            )
        )

        factory = Boto3ClientFactory(region)
        try:
            with AuditLog(settings.audit_dir) as audit:
                orchestrator = DeploymentOrchestrator(
                    plan,
                    factory,
                    factory.credentials(),
                    SubprocessCommandRunner(),
                    audit,
                    region,
                )
                results = orchestrator.run()
        except DeployError as e:
            console.print(
                Panel.fit(f"[bold red]Deployment failed[/bold red]\n\n{e}", border_style="red", padding=(1, 2))
            )
            return 1
        except OSError as e:
            console.print(f"[red]Error: Could not write the audit log in {settings.audit_dir}: {e}[/red]")
            return 1

        for position, outputs in enumerate(results):
            if outputs:
                console.print(outputs_table(f"Output parameters (sequence {position + 1})", outputs))

        console.print("\n[green]✓ Deployment complete[/green]")
        return 0
