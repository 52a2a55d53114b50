"""Run external commands with a timeout."""

import asyncio
import logging
import signal
from dataclasses import dataclass

logger = logging.getLogger(__name__)

PIPE_DRAIN_SECONDS = 2.0
EXIT_POLL_SECONDS = 0.05


@dataclass
class CommandResult:
    """Outcome of one external command run."""

    stdout: str
    stderr: str
    code: int | None
    signal: str | None = None
    killed: bool = False  # True when the timeout fired and the process was killed


class CommandError(Exception):
    """Raised by ``run_exec`` when a command cannot run or exits non-zero."""

    def __init__(self, message: str, stdout: str = "", stderr: str = ""):
        super().__init__(message)
        self.stdout = stdout
        self.stderr = stderr


async def _drain(stream: asyncio.StreamReader | None, chunks: list[bytes]) -> None:
    if stream is None:
        return
    while True:
        chunk = await stream.read(4096)
        if not chunk:
            return
        chunks.append(chunk)


def _decode(chunks: list[bytes]) -> str:
    return b"".join(chunks).decode("utf-8", errors="replace")


async def _exited(process: asyncio.subprocess.Process) -> int:
    """Wait for the process to exit, without waiting for its pipes to close."""
    while process.returncode is None:
        await asyncio.sleep(EXIT_POLL_SECONDS)
    return process.returncode


def _signal_name(returncode: int | None) -> str | None:
    if returncode is None or returncode >= 0:
        return None
    try:
        return signal.Signals(-returncode).name
    except ValueError:
        return str(-returncode)


async def run_command_with_timeout(
    argv: list[str],
    timeout: float,
    cwd: str | None = None,
) -> CommandResult:
    """Run ``argv`` and collect its output.

    On timeout the process is killed and the result is marked ``killed`` with
    whatever output was captured up to that point. Spawn failures
    (``FileNotFoundError``, ``PermissionError``) propagate.
    """
    process = await asyncio.create_subprocess_exec(
        *argv,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
        cwd=cwd,
    )

    stdout_chunks: list[bytes] = []
    stderr_chunks: list[bytes] = []
    readers = asyncio.gather(
        _drain(process.stdout, stdout_chunks),
        _drain(process.stderr, stderr_chunks),
    )

    killed = False
    try:
        await asyncio.wait_for(_exited(process), timeout=timeout)
    except asyncio.TimeoutError:
        logger.warning("Command %s timed out after %ss; killing pid %s", argv[0], timeout, process.pid)
        try:
            process.kill()
        except ProcessLookupError:
            pass
        killed = True
        await _exited(process)

    # Background children may still hold the pipes open after exit.
    try:
        await asyncio.wait_for(readers, timeout=PIPE_DRAIN_SECONDS)
    except asyncio.TimeoutError:
        logger.debug("Output pipes of %s still open %ss after exit", argv[0], PIPE_DRAIN_SECONDS)

    return CommandResult(
        stdout=_decode(stdout_chunks),
        stderr=_decode(stderr_chunks),
        code=process.returncode,
        signal=_signal_name(process.returncode),
        killed=killed,
    )


async def run_exec(argv: list[str], timeout: float, cwd: str | None = None) -> CommandResult:
    """Run ``argv`` and require success.

    Raises ``CommandError`` on spawn failure, timeout or non-zero exit.
    """
    try:
        result = await run_command_with_timeout(argv, timeout, cwd=cwd)
    except OSError as e:
        raise CommandError(f"failed to start {argv[0]}: {e}") from e

    if result.killed:
        raise CommandError(
            f"{argv[0]} timed out after {timeout}s", stdout=result.stdout, stderr=result.stderr
        )
    if result.code != 0:
        raise CommandError(
            f"{argv[0]} exited with code {result.code}", stdout=result.stdout, stderr=result.stderr
        )
    return result
