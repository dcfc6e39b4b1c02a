from installflow.commands.asynchronous import AsyncFail, AsyncLogger, AsyncSleep
from installflow.commands.fallback import Try
from installflow.commands.sync import SCP, Exec, Fail, Logger, Sleep

__all__ = [
    "Exec",
    "SCP",
    "Logger",
    "Fail",
    "Sleep",
    "AsyncSleep",
    "AsyncFail",
    "AsyncLogger",
    "Try",
    "BUILTIN_COMMANDS",
]

BUILTIN_COMMANDS = [Exec, SCP, Logger, Fail, Sleep, AsyncSleep, AsyncFail, AsyncLogger, Try]
