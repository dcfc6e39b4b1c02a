from typing import Any

from installflow.application.service import InstallManager
from installflow.domain.entity import Command, InstallProgress, Workflow


class Client:
    """
    Unified client façade over an install manager.

    This is what a transport layer (RPC handler, CLI) talks to: it accepts installs,
    answers progress queries and removes finished installs. Commands from
    collaborators are added with ``.command()`` before the first workflow is parsed.
    """

    def __init__(self, manager: InstallManager):
        """
        Initialize the client with an install manager.

        :param manager: The manager wired with a registry, engine and progress store
        :type manager: InstallManager
        """
        self._manager = manager

    @property
    def manager(self) -> InstallManager:
        return self._manager

    def command(self, command: type[Command]) -> "Client":
        """
        Register a command class under its category and ``command_name``.

        :param command: The command class to register
        :type command: type[Command]
        :returns: The client instance for method chaining
        :rtype: Client
        :raises RuntimeError: If workflows have already been parsed
        """
        self._manager.registry.register(command.category, command.command_name, command.from_dict)
        return self

    def parse(self, source: str, params: Any = None, name: str = "workflow") -> Workflow:
        return self._manager.parse(source, params, name)

    def explain(self, source: str, params: Any = None, name: str = "workflow") -> str:
        """
        Describe what an install would do, without running anything.

        :param source: The templated workflow source
        :type source: str
        :param params: The parameter bag for the template
        :type params: Any
        :param name: Workflow name used in diagnostics
        :type name: str
        :returns: The rendered plan
        :rtype: str
        """
        return self._manager.explain(source, params, name)

    def start_install(
        self, source: str, params: Any = None, install_id: str | None = None, name: str = "install"
    ) -> str:
        """
        Start an install and return its identifier immediately.

        :param source: The templated workflow source
        :type source: str
        :param params: The parameter bag for the template
        :type params: Any
        :param install_id: Optional install identifier
        :type install_id: str | None
        :param name: Workflow name used in diagnostics
        :type name: str
        :returns: The install identifier
        :rtype: str
        """
        return self._manager.start_install(source, params, install_id=install_id, name=name)

    def check_progress(self, install_id: str) -> InstallProgress:
        """
        Get the state of an install.

        :param install_id: The install identifier
        :type install_id: str
        :returns: The current progress snapshot
        :rtype: InstallProgress
        :raises InstallNotFoundError: If the install is unknown or was removed
        """
        return self._manager.check_progress(install_id)

    def remove_install(self, install_id: str) -> bool:
        """
        Remove an install record.

        :param install_id: The install identifier
        :type install_id: str
        :returns: True once the record is removed
        :rtype: bool
        :raises InstallNotFoundError: If the install is unknown
        """
        self._manager.remove_install(install_id)
        return True

    def list_installs(self) -> list[str]:
        return self._manager.list_installs()

    def wait(self, install_id: str, timeout: float = 300.0, interval: float | None = None) -> InstallProgress:
        return self._manager.wait(install_id, timeout=timeout, interval=interval)

    def registered_commands(self) -> list[tuple[str, str]]:
        """
        Get the (category, name) pairs the registry knows about.

        :returns: List of registered pairs
        :rtype: list[tuple[str, str]]
        """
        registered = getattr(self._manager.registry, "registered", None)
        if registered is None:
            raise NotImplementedError("Registry does not support listing commands")
        return registered()

    def shutdown(self, wait: bool = True) -> None:
        self._manager.shutdown(wait=wait)
