import sys

import pytest
from click.testing import CliRunner
from loguru import logger

from awx_installer.cli import cli
from awx_installer.errors import AllStrategiesFailedError, InstallationCancelled
from awx_installer.installer import Installer
from awx_installer.models import AccessInfo


@pytest.fixture(autouse=True)
def restore_logging():
    yield
    logger.remove()
    logger.add(sys.stderr)


@pytest.fixture
def fake_run(monkeypatch):
    """Replace the real installation with one that only honours the method choice."""
    state = {"error": None}

    async def run(self, select_method):
        method = select_method()
        if state["error"] is not None:
            raise state["error"]
        return AccessInfo(
            method=method,
            url=self.config.awx_url,
            username=self.config.admin_user,
            password=self.config.admin_password,
        )

    monkeypatch.setattr(Installer, "run", run)
    return state


def test_help():
    result = CliRunner().invoke(cli, ["--help"])
    assert result.exit_code == 0
    assert "--method" in result.output


def test_menu_choice_docker(fake_run):
    result = CliRunner().invoke(cli, [], input="2")

    assert result.exit_code == 0
    assert "Choose installation method:" in result.output
    assert "Enter your choice (1 or 2): 2\n" in result.output
    assert "AWX Access Information (Docker):" in result.output
    assert "- View containers: docker-compose ps" in result.output


def test_method_option_skips_menu(fake_run):
    result = CliRunner().invoke(cli, ["--method", "operator"])

    assert result.exit_code == 0
    assert "Choose installation method:" not in result.output
    assert "Kubernetes commands:" in result.output
    assert "- Delete cluster: kind delete cluster --name awx" in result.output


def test_invalid_choice_exits_1(fake_run):
    result = CliRunner().invoke(cli, [], input="3")

    assert result.exit_code == 1
    assert "AWX Access Information" not in result.output


def test_admin_password_from_environment(fake_run):
    result = CliRunner().invoke(
        cli,
        ["--method", "docker"],
        env={"AWX_INSTALLER_ADMIN_PASSWORD": "hunter2"},
        auto_envvar_prefix="AWX_INSTALLER",
    )

    assert result.exit_code == 0
    assert "Password: hunter2" in result.output


def test_all_strategies_failed_exits_1(fake_run):
    fake_run["error"] = AllStrategiesFailedError([])

    result = CliRunner().invoke(cli, ["--method", "docker"])

    assert result.exit_code == 1


def test_cancelled_exits_130(fake_run):
    fake_run["error"] = InstallationCancelled("cluster nodes to be ready")

    result = CliRunner().invoke(cli, ["--method", "operator"])

    assert result.exit_code == 130
