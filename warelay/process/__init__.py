"""External process execution and serialization."""

from warelay.process.command_queue import CommandQueue, enqueue_command, get_command_queue
from warelay.process.exec import CommandError, CommandResult, run_command_with_timeout, run_exec

__all__ = [
    "CommandError",
    "CommandQueue",
    "CommandResult",
    "enqueue_command",
    "get_command_queue",
    "run_command_with_timeout",
    "run_exec",
]
