from typing import Dict, List, NamedTuple, Optional, Tuple

import pytest
from loguru import logger

from awx_installer.errors import CommandError
from awx_installer.models import CommandResult, InstallerConfig, PollConfig
from awx_installer.readiness import ReadinessWaiter


class Call(NamedTuple):
    argv: Tuple[str, ...]
    input: Optional[str]
    cwd: Optional[str]


class FakeRunner:
    """CommandRunner double answering by the longest matching argv prefix.

    A response is `(returncode, stdout)`, or a list of those consumed in
    order with the last one repeating. Unmatched commands succeed silently.
    """

    def __init__(self, responses: Optional[Dict[tuple, object]] = None, available=()):
        self.responses = dict(responses or {})
        self.available = set(available)
        self.calls: List[Call] = []

    def which(self, name: str) -> bool:
        return name in self.available

    def _respond(self, argv: Tuple[str, ...]) -> Tuple[int, str]:
        matches = [p for p in self.responses if argv[: len(p)] == p]
        if not matches:
            return 0, ""
        response = self.responses[max(matches, key=len)]
        if isinstance(response, list):
            return response.pop(0) if len(response) > 1 else response[0]
        return response

    async def run(self, *argv, input=None, cwd=None, check=True) -> CommandResult:
        self.calls.append(Call(argv, input, str(cwd) if cwd is not None else None))
        returncode, stdout = self._respond(argv)
        result = CommandResult(argv=list(argv), returncode=returncode, stdout=stdout)
        if check and not result.ok:
            raise CommandError(result)
        return result

    async def sudo(self, *argv, **kwargs) -> CommandResult:
        return await self.run("sudo", *argv, **kwargs)

    def commands(self) -> List[Tuple[str, ...]]:
        return [call.argv for call in self.calls]


class RecordingSleep:
    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.fixture
def sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def waiter_factory(sleep):
    """Waiters that keep their attempt budgets but never actually sleep."""

    def factory(config: PollConfig) -> ReadinessWaiter:
        return ReadinessWaiter(config, sleep=sleep)

    return factory


@pytest.fixture
def config(tmp_path) -> InstallerConfig:
    return InstallerConfig(deploy_dir=tmp_path / "awx-deployment")


@pytest.fixture
def log_messages():
    messages: List[str] = []
    handler_id = logger.add(lambda message: messages.append(message.record["message"]))
    try:
        yield messages
    finally:
        logger.remove(handler_id)
