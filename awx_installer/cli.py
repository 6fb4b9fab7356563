"""
awx-install: install AWX with the AWX Operator (Kubernetes) or Docker Compose.

Every option may also be given as an AWX_INSTALLER_<OPTION> environment
variable, e.g. AWX_INSTALLER_ADMIN_PASSWORD.
"""

import asyncio
import sys
from pathlib import Path
from typing import Optional

import aiohttp
import click
from loguru import logger

from awx_installer.errors import InstallationCancelled, InstallerError
from awx_installer.installer import Installer
from awx_installer.log import configure_logging
from awx_installer.models import AccessInfo, InstallerConfig, InstallMethod

BANNER = "=" * 40
EXIT_FAILURE = 1
EXIT_CANCELLED = 130


def prompt_method() -> InstallMethod:
    click.echo()
    click.echo("Choose installation method:")
    click.echo("1) AWX Operator (Kubernetes) - Recommended, most stable")
    click.echo("2) Docker Compose - Simpler, for development")
    click.echo()
    click.echo("Enter your choice (1 or 2): ", nl=False)
    choice = click.getchar()
    click.echo(choice)
    return InstallMethod.from_choice(choice)


def show_access_info(access: AccessInfo, installer: Installer) -> None:
    title = "Operator" if access.method is InstallMethod.operator else "Docker"
    click.echo()
    click.echo(BANNER)
    click.secho(f"AWX Access Information ({title}):", bold=True)
    click.echo(f"URL: {access.url}")
    click.echo(f"Username: {access.username}")
    click.echo(f"Password: {access.password}")
    click.echo(BANNER)
    click.echo()
    click.echo("Next steps:")
    click.echo(f"1. Access AWX at {access.url}")
    click.echo("2. Log in with the credentials shown above")
    click.echo("3. Start creating projects, inventories, and job templates")
    click.echo()
    heading = "Kubernetes commands:" if access.method is InstallMethod.operator else "Docker commands:"
    click.echo(heading)
    for step in installer.strategy_for(access.method).next_steps():
        click.echo(f"- {step}")
    click.echo()
    click.echo("For support, visit: https://github.com/ansible/awx")


@click.command()
@click.option(
    "--method",
    type=click.Choice([m.value for m in InstallMethod]),
    default=None,
    help="Installation method; prompts when omitted.",
)
@click.option("--admin-user", default="admin", show_default=True)
@click.option("--admin-password", default="password", show_default=True)
@click.option("--secret-key", default=InstallerConfig().secret_key)
@click.option(
    "--deploy-dir",
    type=click.Path(path_type=Path),
    default=InstallerConfig().deploy_dir,
    show_default=True,
    help="Directory for the docker-compose deployment.",
)
@click.option("--operator-version", default=InstallerConfig().operator_version, show_default=True)
@click.option("--log-level", default="INFO", show_default=True)
@click.option("--yes", "-y", "assume_yes", is_flag=True, help="Continue on low memory without asking.")
def cli(
    method: Optional[str],
    admin_user: str,
    admin_password: str,
    secret_key: str,
    deploy_dir: Path,
    operator_version: str,
    log_level: str,
    assume_yes: bool,
) -> None:
    """Comprehensive AWX installer with Kubernetes and Docker Compose fallback."""
    configure_logging(log_level)

    click.echo(BANNER)
    click.echo("Comprehensive AWX Installation")
    click.echo(BANNER)

    config = InstallerConfig(
        admin_user=admin_user,
        admin_password=admin_password,
        secret_key=secret_key,
        deploy_dir=deploy_dir,
        operator_version=operator_version,
    )

    def confirm(prompt: str) -> bool:
        return assume_yes or click.confirm(prompt, default=False)

    def select_method() -> InstallMethod:
        return InstallMethod(method) if method else prompt_method()

    installer = Installer(config, confirm=confirm)

    try:
        access = asyncio.run(installer.run(select_method))
    except (InstallationCancelled, KeyboardInterrupt):
        logger.error("Installation cancelled")
        sys.exit(EXIT_CANCELLED)
    except (InstallerError, aiohttp.ClientError, OSError) as e:
        logger.error(str(e))
        sys.exit(EXIT_FAILURE)

    logger.success("AWX installation completed!")
    show_access_info(access, installer)


def main() -> None:
    cli(auto_envvar_prefix="AWX_INSTALLER")


if __name__ == "__main__":
    main()
