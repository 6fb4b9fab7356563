from typing import Callable, List, Optional

import aiohttp
from loguru import logger

from awx_installer import dependencies, preflight
from awx_installer.errors import (
    AllStrategiesFailedError,
    InstallationCancelled,
    InstallerError,
    ReadinessTimeoutError,
)
from awx_installer.models import AccessInfo, InstallerConfig, InstallMethod
from awx_installer.readiness import ReadinessWaiter
from awx_installer.shell import CommandRunner
from awx_installer.strategies import STRATEGIES, Strategy, WaiterFactory

STRATEGY_FAILURES = (InstallerError, aiohttp.ClientError, OSError)


class Installer:
    def __init__(
        self,
        config: InstallerConfig,
        runner: Optional[CommandRunner] = None,
        waiter_factory: WaiterFactory = ReadinessWaiter,
        confirm: Callable[[str], bool] = lambda prompt: False,
    ):
        self.config = config
        self.runner = runner or CommandRunner()
        self.waiter_factory = waiter_factory
        self.confirm = confirm
        self.logger = logger

    def strategy_for(self, method: InstallMethod) -> Strategy:
        return STRATEGIES[method](self.config, self.runner, self.waiter_factory)

    async def _attempt(self, strategy: Strategy) -> AccessInfo:
        await strategy.prepare()
        return await strategy.install()

    def _report_failure(self, strategy: Strategy, error: Exception) -> None:
        self.logger.error(f"AWX {strategy.method.value} installation failed: {error}")
        if isinstance(error, ReadinessTimeoutError) and error.hint:
            self.logger.info(error.hint)

    async def install_with_fallback(self, method: InstallMethod) -> AccessInfo:
        """Install with `method`, falling back to the other method exactly once"""
        errors: List[Exception] = []
        attempted: Optional[Strategy] = None

        try:
            for candidate in (method, method.alternate):
                attempted = self.strategy_for(candidate)
                if errors:
                    self.logger.warning(
                        f"Trying {candidate.value} installation as fallback..."
                    )
                try:
                    return await self._attempt(attempted)
                except InstallationCancelled:
                    raise
                except STRATEGY_FAILURES as e:
                    self._report_failure(attempted, e)
                    errors.append(e)
            raise AllStrategiesFailedError(errors)
        finally:
            if attempted is not None:
                self.logger.warning(f"To clean up, run: {attempted.cleanup_hint()}")

    async def run(self, select_method: Callable[[], InstallMethod]) -> AccessInfo:
        """Check the host, install the shared tooling, then deploy AWX"""
        preflight.check_not_root()
        preflight.check_requirements(self.config, self.confirm)

        await dependencies.install_base_packages(self.runner)
        await dependencies.install_docker(self.runner)
        await dependencies.install_docker_compose(self.runner, self.config)

        return await self.install_with_fallback(select_method())
