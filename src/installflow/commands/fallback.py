from typing import TYPE_CHECKING, Any, ClassVar

import msgspec
import structlog

from installflow.domain.entity import Command, CommandResult
from installflow.domain.exception import MalformedDefinitionError
from installflow.domain.value_object import CommandCategory

if TYPE_CHECKING:
    from installflow.application.port import CommandRegistry

logger = structlog.get_logger(__name__)


class Try(Command, kw_only=True, forbid_unknown_fields=True):
    """
    Runs ``try_command`` and falls back to ``on_fail_command`` when it fails.

    The fallback runs if and only if the primary command raises or returns an
    unsuccessful result; its outcome, including any exception, is returned as is.
    Both children may be sync or async; ``Try`` itself blocks until the branch
    that runs has finished.
    """

    command_name: ClassVar[str] = "try"
    category: ClassVar[CommandCategory] = CommandCategory.SYNC

    try_command: Command = msgspec.field(name="cmd")
    on_fail_command: Command = msgspec.field(name="onFail")
    description: str = ""

    @classmethod
    def from_dict(cls, raw: dict[str, Any], registry: "CommandRegistry") -> "Try":
        fields = dict(raw)
        primary = fields.pop("cmd", None)
        fallback = fields.pop("onFail", None)
        description = fields.pop("description", "")
        if primary is None or fallback is None:
            raise MalformedDefinitionError("try requires both 'cmd' and 'onFail' commands")
        if fields:
            raise MalformedDefinitionError(f"unexpected fields for try: {sorted(fields)}")
        if not isinstance(description, str):
            raise MalformedDefinitionError("try 'description' must be a string")
        return cls(
            try_command=registry.decode(primary),
            on_fail_command=registry.decode(fallback),
            description=description,
        )

    def validate(self) -> None:
        for child in (self.try_command, self.on_fail_command):
            if not isinstance(child, Command):
                raise ValueError(f"try expects commands, got {type(child).__name__}")
            child.validate()

    def run(self, workflow_id: str) -> CommandResult:
        try:
            result = self.try_command.run(workflow_id)
        except Exception as e:
            logger.warning(
                "Primary command raised, running fallback",
                workflow_id=workflow_id,
                command=str(self.try_command),
                error=str(e),
            )
        else:
            if result.success:
                return result
            logger.info(
                "Primary command failed, running fallback",
                workflow_id=workflow_id,
                command=str(self.try_command),
                error=result.error or result.output,
            )
        return self.on_fail_command.run(workflow_id)

    def __str__(self) -> str:
        text = f"{self.category.value.upper()} Try"
        return f"{text} {self.description}" if self.description else text

    def pretty_print(self, indentation: int = 0) -> str:
        pad = " " * indentation
        return "\n".join(
            [
                pad + str(self),
                pad + "  try:",
                self.try_command.pretty_print(indentation + 4),
                pad + "  on fail:",
                self.on_fail_command.pretty_print(indentation + 4),
            ]
        )

    def user_string(self) -> str:
        return self.try_command.user_string()
