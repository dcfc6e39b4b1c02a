from typing import Any

import msgspec

from installflow.application.port import CommandDecoder, CommandRegistry
from installflow.domain.entity import Command
from installflow.domain.exception import MalformedDefinitionError, UnknownCommandError, WorkflowDefinitionError
from installflow.domain.value_object import CommandCategory


def _category_key(category: CommandCategory | str) -> str:
    return category.value if isinstance(category, CommandCategory) else str(category)


class InMemoryCommandRegistry(CommandRegistry):
    """Resolves command decoders from an in-memory table populated at startup."""

    def __init__(self, commands: list[type[Command]] | None = None):
        """
        Initializes the registry with optional command classes.

        :param commands: Command classes registered under their category and ``command_name``
        :type commands: list[type[Command]] | None
        """
        self._registry: dict[tuple[str, str], CommandDecoder] = {}
        self._sealed = False
        for cls in commands or []:
            self.register(cls.category, cls.command_name, cls.from_dict)

    def register(self, category: CommandCategory | str, name: str, decoder: CommandDecoder) -> None:
        if self._sealed:
            raise RuntimeError(f"Cannot register command '{name}' once workflows are being parsed")
        key = (_category_key(category), name)
        if key in self._registry:
            raise ValueError(f"Command already registered: type={key[0]!r} name={key[1]!r}")
        self._registry[key] = decoder

    def resolve(self, category: CommandCategory | str, name: str) -> CommandDecoder:
        # First lookup closes the initialization phase.
        self._sealed = True
        key = (_category_key(category), name)
        try:
            return self._registry[key]
        except KeyError:
            raise UnknownCommandError(key[0], key[1]) from None

    def decode(self, raw: dict[str, Any]) -> Command:
        if not isinstance(raw, dict):
            raise MalformedDefinitionError(f"command must be an object, got {type(raw).__name__}")
        fields = dict(raw)
        category = fields.pop("type", None)
        name = fields.pop("name", None)
        if not isinstance(category, str) or not isinstance(name, str):
            raise MalformedDefinitionError("command requires string 'type' and 'name' fields")
        decoder = self.resolve(category, name)
        try:
            command = decoder(fields, self)
            command.validate()
        except WorkflowDefinitionError:
            raise
        except (msgspec.ValidationError, ValueError, TypeError) as e:
            raise MalformedDefinitionError(f"invalid {category} command '{name}': {e}") from e
        return command

    def registered(self) -> list[tuple[str, str]]:
        """
        Get the registered (category, name) pairs.

        :returns: Sorted list of registered pairs
        :rtype: list[tuple[str, str]]
        """
        return sorted(self._registry)
