import os
import shutil
from typing import Callable, Optional

from loguru import logger

from awx_installer.errors import PreconditionError
from awx_installer.models import InstallerConfig

GIB = 1024**3


def total_memory_gb() -> int:
    return os.sysconf("SC_PAGE_SIZE") * os.sysconf("SC_PHYS_PAGES") // GIB


def free_disk_gb(path: str = "/") -> int:
    return shutil.disk_usage(path).free // GIB


def check_not_root(geteuid: Callable[[], int] = os.geteuid) -> None:
    if geteuid() == 0:
        raise PreconditionError(
            "This installer should not be run as root for security reasons. "
            "Please run as a regular user with sudo privileges"
        )


def check_requirements(
    config: InstallerConfig,
    confirm: Callable[[str], bool],
    memory_gb: Optional[Callable[[], int]] = None,
    disk_gb: Optional[Callable[[], int]] = None,
) -> None:
    """Verify the host has enough memory and disk for AWX"""
    logger.info("Checking system requirements...")

    memory = (memory_gb or total_memory_gb)()
    if memory < config.min_memory_gb:
        logger.warning(
            f"Less than {config.min_memory_gb}GB RAM detected ({memory}GB). AWX may not perform well."
        )
        if not confirm("Continue anyway?"):
            raise PreconditionError("Installation aborted: insufficient memory")

    disk = (disk_gb or free_disk_gb)()
    if disk < config.min_disk_gb:
        raise PreconditionError(
            f"Insufficient disk space. At least {config.min_disk_gb}GB required, {disk}GB available."
        )

    logger.success("System requirements check passed")
