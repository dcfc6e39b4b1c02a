from installflow.commands import BUILTIN_COMMANDS
from installflow.domain.entity import Command


def load_commands() -> list[type[Command]]:
    """Returns the command classes shipped with installflow."""
    return list(BUILTIN_COMMANDS)
