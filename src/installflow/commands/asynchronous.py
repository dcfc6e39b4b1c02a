"""
Async variants of the basic commands.

They behave like their sync counterparts; the category only tells the engine
that it may dispatch them without waiting before moving to the next command.
"""

from typing import ClassVar

from installflow.commands.sync import Fail, Logger, Sleep
from installflow.domain.value_object import CommandCategory


class AsyncSleep(Sleep, kw_only=True, forbid_unknown_fields=True):
    category: ClassVar[CommandCategory] = CommandCategory.ASYNC


class AsyncFail(Fail, kw_only=True, forbid_unknown_fields=True):
    category: ClassVar[CommandCategory] = CommandCategory.ASYNC


class AsyncLogger(Logger, kw_only=True, forbid_unknown_fields=True):
    category: ClassVar[CommandCategory] = CommandCategory.ASYNC
