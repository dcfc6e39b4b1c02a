from installflow.backend import BackendType
from installflow.client import Client
from installflow.domain.entity import Command
from installflow.infrastructure.adapter.in_memory.client import create as create_in_memory_manager
from installflow.infrastructure.adapter.sqlite.client import create as create_sqlite_manager
from installflow.infrastructure.provider import load_commands


def create(backend: BackendType, commands: list[type[Command]] | None = None, **kwargs) -> Client:
    """
    Factory function to create a Client with the specified backend.

    The builtin commands are always registered; ``commands`` adds collaborator-defined kinds.

    :param backend: The backend type used to store install progress
    :type backend: BackendType
    :param commands: Optional list of extra command classes to register
    :type commands: list[type[Command]] | None
    :param kwargs: ``execution_options``, ``config`` and backend-specific options such as ``db_path``
    :returns: A configured Client instance
    :rtype: Client
    :raises ValueError: If the backend type is unsupported
    """
    commands = load_commands() + list(commands or [])
    execution_options = kwargs.get("execution_options")
    config = kwargs.get("config")

    if backend == BackendType.IN_MEMORY:
        manager = create_in_memory_manager(commands, execution_options=execution_options, config=config)
        return Client(manager)

    elif backend == BackendType.SQLITE:
        db_path = kwargs.get("db_path", ":memory:")
        manager = create_sqlite_manager(
            commands, db_path=db_path, execution_options=execution_options, config=config
        )
        return Client(manager)

    else:
        raise ValueError(f"Unsupported backend: {backend}")
