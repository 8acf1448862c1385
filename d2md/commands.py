"""Run external commands as asyncio subprocesses."""

import asyncio
from collections.abc import Awaitable, Callable, Sequence
from typing import TypeAlias

from loguru import logger

from d2md.exceptions import ExecError

CommandRunner: TypeAlias = Callable[[str, Sequence[str], str | None], Awaitable[list[str]]]


async def run_command(command: str, args: Sequence[str], stdin: str | None = None) -> list[str]:
    """Run `command` with `args`, optionally feeding `stdin`.

    Returns:
        The non-empty lines written to stdout.

    Raises:
        ExecError: the command could not be launched or exited non-zero.
    """
    logger.debug(f"Running {command} {' '.join(args)}")
    try:
        process = await asyncio.create_subprocess_exec(
            command,
            *args,
            stdin=asyncio.subprocess.PIPE if stdin is not None else asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as e:
        raise ExecError(command, None, str(e)) from e

    stdout, stderr = await process.communicate(stdin.encode("utf-8") if stdin is not None else None)

    if process.returncode != 0:
        raise ExecError(command, process.returncode, stderr.decode("utf-8", errors="replace"))

    return [line for line in stdout.decode("utf-8", errors="replace").splitlines() if line]
