import asyncio
import shutil
from pathlib import Path
from typing import Optional, Union

from loguru import logger

from awx_installer.errors import CommandError
from awx_installer.models import CommandResult


class CommandRunner:
    """Runs external tools (apt, docker, kind, kubectl) as subprocesses"""

    def __init__(self):
        self.logger = logger

    def which(self, name: str) -> bool:
        return shutil.which(name) is not None

    async def run(
        self,
        *argv: str,
        input: Optional[str] = None,
        cwd: Optional[Union[str, Path]] = None,
        check: bool = True,
    ) -> CommandResult:
        self.logger.debug(f"Running: {' '.join(argv)}")
        try:
            process = await asyncio.create_subprocess_exec(
                *argv,
                stdin=asyncio.subprocess.PIPE if input is not None else None,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=str(cwd) if cwd is not None else None,
            )
        except FileNotFoundError:
            result = CommandResult(
                argv=list(argv), returncode=127, stderr=f"{argv[0]}: command not found"
            )
        else:
            stdout, stderr = await process.communicate(
                input.encode() if input is not None else None
            )
            result = CommandResult(
                argv=list(argv),
                returncode=process.returncode,
                stdout=stdout.decode(errors="replace"),
                stderr=stderr.decode(errors="replace"),
            )

        if check and not result.ok:
            raise CommandError(result)
        return result

    async def sudo(self, *argv: str, **kwargs) -> CommandResult:
        return await self.run("sudo", *argv, **kwargs)
