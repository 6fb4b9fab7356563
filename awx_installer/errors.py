from typing import TYPE_CHECKING, List

if TYPE_CHECKING:
    from awx_installer.models import CommandResult, PollOutcome


class InstallerError(Exception):
    """Base class for every failure the installer reports to the operator"""


class PreconditionError(InstallerError):
    """The host is not fit for installation (privileges, memory, disk)"""


class InvalidChoiceError(InstallerError):
    pass


class CommandError(InstallerError):
    """An external tool exited with a non-zero status"""

    def __init__(self, result: "CommandResult"):
        self.result = result
        detail = (result.stderr or result.stdout).strip()
        message = f"Command {' '.join(result.argv)!r} failed with exit code {result.returncode}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class ReadinessTimeoutError(InstallerError):
    def __init__(self, description: str, outcome: "PollOutcome", hint: str = ""):
        self.description = description
        self.outcome = outcome
        self.hint = hint
        super().__init__(
            f"{description} was not ready after {outcome.attempts} attempts"
        )


class InstallationCancelled(InstallerError):
    def __init__(self, description: str):
        self.description = description
        super().__init__(f"Cancelled while waiting for {description}")


class AllStrategiesFailedError(InstallerError):
    def __init__(self, errors: List[Exception]):
        self.errors = errors
        super().__init__("All installation methods failed")
