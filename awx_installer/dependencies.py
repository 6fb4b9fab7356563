import getpass
import tempfile
from pathlib import Path

from loguru import logger

from awx_installer.downloads import download, fetch_text
from awx_installer.models import InstallerConfig
from awx_installer.shell import CommandRunner

BASE_PACKAGES = [
    "curl",
    "wget",
    "git",
    "apt-transport-https",
    "ca-certificates",
    "gnupg",
    "lsb-release",
    "software-properties-common",
    "python3",
    "python3-pip",
    "python3-venv",
]

DOCKER_PACKAGES = [
    "docker-ce",
    "docker-ce-cli",
    "containerd.io",
    "docker-compose-plugin",
]

DOCKER_GPG_URL = "https://download.docker.com/linux/ubuntu/gpg"
DOCKER_KEYRING = "/usr/share/keyrings/docker-archive-keyring.gpg"
DOCKER_SOURCES_LIST = "/etc/apt/sources.list.d/docker.list"
KUBECTL_STABLE_URL = "https://dl.k8s.io/release/stable.txt"
KUBECTL_URL = "https://dl.k8s.io/release/{version}/bin/linux/amd64/kubectl"
KIND_URL = "https://kind.sigs.k8s.io/dl/{version}/kind-linux-amd64"
COMPOSE_URL = (
    "https://github.com/docker/compose/releases/download/{version}/docker-compose-linux-x86_64"
)


async def _install_binary(runner: CommandRunner, url: str, name: str) -> None:
    """Download `url` and install it as an executable in /usr/local/bin"""
    with tempfile.TemporaryDirectory() as tmp:
        binary = await download(url, Path(tmp) / name)
        await runner.sudo(
            "install", "-o", "root", "-g", "root", "-m", "0755",
            str(binary), f"/usr/local/bin/{name}",
        )


async def install_base_packages(runner: CommandRunner) -> None:
    logger.info("Installing dependencies...")
    await runner.sudo("apt", "update")
    await runner.sudo("apt", "install", "-y", *BASE_PACKAGES)
    logger.success("Dependencies installed successfully")


async def install_docker(runner: CommandRunner) -> None:
    logger.info("Installing Docker...")
    if runner.which("docker"):
        logger.info("Docker already installed")
        return

    key = await fetch_text(DOCKER_GPG_URL)
    await runner.sudo("gpg", "--batch", "--yes", "--dearmor", "-o", DOCKER_KEYRING, input=key)

    arch = (await runner.run("dpkg", "--print-architecture")).stdout.strip()
    codename = (await runner.run("lsb_release", "-cs")).stdout.strip()
    source = (
        f"deb [arch={arch} signed-by={DOCKER_KEYRING}] "
        f"https://download.docker.com/linux/ubuntu {codename} stable\n"
    )
    await runner.sudo("tee", DOCKER_SOURCES_LIST, input=source)

    await runner.sudo("apt", "update")
    await runner.sudo("apt", "install", "-y", *DOCKER_PACKAGES)

    await runner.sudo("usermod", "-aG", "docker", getpass.getuser())
    await runner.sudo("systemctl", "start", "docker")
    await runner.sudo("systemctl", "enable", "docker")

    logger.success("Docker installed successfully")
    logger.warning(
        "You may need to log out and back in for Docker group membership to take effect"
    )


async def install_docker_compose(runner: CommandRunner, config: InstallerConfig) -> None:
    logger.info("Installing Docker Compose...")
    if runner.which("docker-compose"):
        logger.info("Docker Compose already installed")
        return

    url = COMPOSE_URL.format(version=config.compose_version)
    await _install_binary(runner, url, "docker-compose")

    await runner.run("docker-compose", "--version")
    logger.success("Docker Compose installed successfully")


async def install_k8s_tools(runner: CommandRunner, config: InstallerConfig) -> None:
    logger.info("Installing Kubernetes tools...")

    if not runner.which("kubectl"):
        version = (await fetch_text(KUBECTL_STABLE_URL)).strip()
        await _install_binary(runner, KUBECTL_URL.format(version=version), "kubectl")

    if not runner.which("kind"):
        await _install_binary(runner, KIND_URL.format(version=config.kind_version), "kind")

    logger.success("Kubernetes tools installed successfully")
