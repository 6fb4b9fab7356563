import asyncio
from typing import Any, Awaitable, Callable, Optional

from loguru import logger

from awx_installer.errors import InstallationCancelled, ReadinessTimeoutError
from awx_installer.models import PollConfig, PollOutcome, PollStatus

Predicate = Callable[[], Awaitable[Any]]


class ReadinessWaiter:
    def __init__(
        self,
        config: Optional[PollConfig] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.config = config or PollConfig()
        self.logger = logger
        self._sleep = sleep

    async def _check_once(self, predicate: Predicate, description: str) -> Any:
        """Invoke the predicate, treating any error as not ready yet"""
        try:
            return await predicate()
        except Exception as e:
            self.logger.debug(f"Readiness check for {description} failed: {e}")
            return None

    async def _wait_before_retry(self, attempt: int, description: str) -> None:
        self.logger.info(
            f"Attempt {attempt}/{self.config.max_attempts} - Waiting for {description}..."
        )
        await self._sleep(self.config.interval)

    async def wait(self, predicate: Predicate, description: str) -> PollOutcome:
        """Poll the predicate until it reports ready or the attempt budget runs out"""
        loop = asyncio.get_event_loop()
        start_time = loop.time()
        attempt = 0

        try:
            while attempt < self.config.max_attempts:
                attempt += 1
                observed = await self._check_once(predicate, description)

                if observed:
                    elapsed_time = loop.time() - start_time
                    self.logger.debug(
                        f"{description} ready after {attempt} attempt(s), {elapsed_time:.1f}s"
                    )
                    return PollOutcome.ready(
                        attempts=attempt,
                        observed=None if observed is True else observed,
                        elapsed_time=elapsed_time,
                    )

                if attempt < self.config.max_attempts:
                    await self._wait_before_retry(attempt, description)
        except asyncio.CancelledError:
            self.logger.warning(f"Waiting for {description} was cancelled")
            return PollOutcome.cancelled(
                attempts=attempt, elapsed_time=loop.time() - start_time
            )

        return PollOutcome.timed_out(
            attempts=attempt, elapsed_time=loop.time() - start_time
        )

    async def require(
        self, predicate: Predicate, description: str, hint: str = ""
    ) -> PollOutcome:
        """Wait like `wait`, but raise unless the outcome is ready"""
        outcome = await self.tolerate_timeout(predicate, description)
        if not outcome.is_ready:
            raise ReadinessTimeoutError(description, outcome, hint=hint)
        return outcome

    async def tolerate_timeout(self, predicate: Predicate, description: str) -> PollOutcome:
        """Wait like `wait`; a timeout is returned but cancellation still raises"""
        outcome = await self.wait(predicate, description)
        if outcome.status == PollStatus.cancelled:
            raise InstallationCancelled(description)
        return outcome
