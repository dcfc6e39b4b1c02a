from typing import TYPE_CHECKING, Any, ClassVar

import msgspec

from installflow.domain.service import CommandIDGenerator
from installflow.domain.value_object import CommandCategory, InstallState, WorkflowResultStatus

if TYPE_CHECKING:
    from installflow.application.port import CommandRegistry


class CommandResult(msgspec.Struct, frozen=True, forbid_unknown_fields=True):
    """Outcome of a single ``Command.run`` call."""

    success: bool
    output: str = ""
    error: str | None = None

    @classmethod
    def ok(cls, output: str = "") -> "CommandResult":
        return cls(success=True, output=output)

    @classmethod
    def failed(cls, output: str, error: str | None = None) -> "CommandResult":
        return cls(success=False, output=output, error=error)


class Command(msgspec.Struct, kw_only=True, rename="camel", forbid_unknown_fields=True):
    """
    Base class for every workflow command.

    Subclasses set ``command_name`` (the registry discriminant) and ``category``
    and implement ``run``. Parameters are fixed at construction; ``run`` returns a
    fresh ``CommandResult`` and never stores it on the command.

    ``run`` raises (typically ``CommandTransportError``) only when the effect could
    not even be attempted. An effect that was attempted and failed is reported as
    ``CommandResult(success=False)``.
    """

    command_name: ClassVar[str] = ""
    category: ClassVar[CommandCategory] = CommandCategory.SYNC

    command_id: str = ""

    def __post_init__(self):
        # Identifiers are never taken from the definition.
        self.command_id = CommandIDGenerator.shared().generate(self.command_name)

    @property
    def name(self) -> str:
        return self.command_name

    @classmethod
    def from_dict(cls, raw: dict[str, Any], registry: "CommandRegistry") -> "Command":
        """
        Build the command from its JSON fields, without the ``type``/``name`` discriminant.

        :param raw: The remaining fields of the command object
        :type raw: dict[str, Any]
        :param registry: Registry used by composite commands to decode nested commands
        :type registry: CommandRegistry
        :returns: The decoded command
        :rtype: Command
        :raises msgspec.ValidationError: If the fields do not match the command
        """
        return msgspec.convert(raw, type=cls)

    def run(self, workflow_id: str) -> CommandResult:
        """
        Execute the command effect.

        :param workflow_id: Identifier of the workflow the command belongs to
        :type workflow_id: str
        :returns: The result of the command
        :rtype: CommandResult
        :raises CommandTransportError: If the effect could not be attempted
        """
        raise NotImplementedError(f"{type(self).__name__} does not implement run")

    def validate(self) -> None:
        """
        Validate the command parameters.

        :raises ValueError: If the command is invalid
        """

    def __str__(self) -> str:
        return f"{self.category.value.upper()} {type(self).__name__}"

    def pretty_print(self, indentation: int = 0) -> str:
        return " " * indentation + str(self)

    def user_string(self) -> str:
        return str(self)


class Workflow(msgspec.Struct, kw_only=True, frozen=True):
    """An ordered, immutable sequence of commands produced by the parser."""

    id: str
    name: str
    description: str
    commands: list[Command]

    def pretty_print(self, indentation: int = 0) -> str:
        header = " " * indentation + f"Workflow {self.name}: {self.description}"
        lines = [header]
        lines.extend(command.pretty_print(indentation + 2) for command in self.commands)
        return "\n".join(lines)

    def user_strings(self) -> list[str]:
        return [command.user_string() for command in self.commands]


class WorkflowResult(msgspec.Struct, forbid_unknown_fields=True):
    """Result of running a workflow, including status and the results of the commands that ran."""

    id: str
    status: WorkflowResultStatus
    results: list[CommandResult]
    error: str | None = None

    @property
    def success(self) -> bool:
        return self.status == WorkflowResultStatus.SUCCESS

    def to_dict(self):
        """Convert the WorkflowResult to a dictionary."""
        return msgspec.to_builtins(self)

    def to_json(self) -> str:
        """Convert the WorkflowResult to a JSON string."""
        return msgspec.json.encode(self).decode()


class InstallProgress(msgspec.Struct, frozen=True, forbid_unknown_fields=True):
    """Snapshot of the lifecycle state of one install. Replaced, never mutated."""

    install_id: str
    state: InstallState
    last_error: str | None = None
    updated_at: float = 0.0

    def to_dict(self):
        return msgspec.to_builtins(self)
