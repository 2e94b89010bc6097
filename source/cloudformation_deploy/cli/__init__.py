# ABOUTME: CLI module for CloudFormation stack deployment
# ABOUTME: Provides the cfn-deploy command-line interface

"""Command-line interface for CloudFormation stack deployment."""

from cleo.application import Application

from .commands.deploy import DeployCommand
from .commands.validate import ValidateCommand


def create_application() -> Application:
    """Create the CLI application."""
    application = Application("cfn-deploy", "1.0.0")

    application.add(DeployCommand())
    application.add(ValidateCommand())

    return application


def main():
    """Main entry point for the CLI."""
    application = create_application()
    application.run()


if __name__ == "__main__":
    main()
