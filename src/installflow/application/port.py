from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any

from installflow.domain.entity import Command, InstallProgress, Workflow, WorkflowResult
from installflow.domain.value_object import CommandCategory, InstallState

CommandDecoder = Callable[[dict[str, Any], "CommandRegistry"], Command]


class CommandRegistry(ABC):
    """
    Abstract lookup from a (category, name) discriminant to a command decoder.

    Registration happens during initialization, before any workflow is parsed.
    Registering is not safe concurrently with lookups.
    """

    @abstractmethod
    def register(self, category: CommandCategory | str, name: str, decoder: CommandDecoder) -> None:
        """
        Register a decoder for a command kind.

        :param category: The command category
        :type category: CommandCategory | str
        :param name: The command name
        :type name: str
        :param decoder: Callable building the command from its remaining JSON fields
        :type decoder: CommandDecoder
        :raises ValueError: If the pair is already registered
        :raises RuntimeError: If lookups have already started
        """

    @abstractmethod
    def resolve(self, category: CommandCategory | str, name: str) -> CommandDecoder:
        """
        Resolve the decoder registered for a command kind.

        :param category: The command category
        :type category: CommandCategory | str
        :param name: The command name
        :type name: str
        :returns: The registered decoder
        :rtype: CommandDecoder
        :raises UnknownCommandError: If the pair is not registered
        """
        ...

    @abstractmethod
    def decode(self, raw: dict[str, Any]) -> Command:
        """
        Decode one JSON command object, recursing for composite commands.

        :param raw: The command object, including its ``type`` and ``name`` fields
        :type raw: dict[str, Any]
        :returns: The decoded command
        :rtype: Command
        :raises UnknownCommandError: If the pair is not registered
        :raises MalformedDefinitionError: If the object does not match the command
        """
        ...


class TemplateRenderer(ABC):
    """Abstract interface for rendering workflow templates."""

    @abstractmethod
    def render(self, source: str, params: dict[str, Any], name: str) -> str:
        """
        Render the template against the parameters.

        :param source: The template text
        :type source: str
        :param params: The parameter bag
        :type params: dict[str, Any]
        :param name: Workflow name used in error messages
        :type name: str
        :returns: The rendered text
        :rtype: str
        :raises TemplateError: If the template is invalid or references a missing parameter
        """


class WorkflowEngine(ABC):
    """Abstract base class defining the workflow engine interface."""

    @abstractmethod
    def run(self, workflow: Workflow) -> WorkflowResult:
        """
        Runs the given workflow.

        :param workflow: The workflow to execute
        :type workflow: Workflow
        :returns: The result of executing the workflow
        :rtype: WorkflowResult
        """
        ...


class ProgressStore(ABC):
    """
    Abstract table of install lifecycle states keyed by install identifier.

    Implementations must never expose a partially written record to readers.
    """

    @abstractmethod
    def create(self, install_id: str) -> InstallProgress:
        """
        Create a record in the INIT state.

        :param install_id: The install identifier
        :type install_id: str
        :returns: The created snapshot
        :rtype: InstallProgress
        :raises InstallAlreadyExistsError: If a record already exists
        """

    @abstractmethod
    def transition(self, install_id: str, state: InstallState, error: str | None = None) -> InstallProgress:
        """
        Move a record to a new state.

        :param install_id: The install identifier
        :type install_id: str
        :param state: The target state
        :type state: InstallState
        :param error: Error message to record
        :type error: str | None
        :returns: The new snapshot
        :rtype: InstallProgress
        :raises InstallNotFoundError: If no record exists
        :raises InvalidTransitionError: If the transition is not allowed
        """

    @abstractmethod
    def get(self, install_id: str) -> InstallProgress:
        """
        Retrieve the current snapshot.

        :param install_id: The install identifier
        :type install_id: str
        :returns: The current snapshot
        :rtype: InstallProgress
        :raises InstallNotFoundError: If no record exists
        """

    @abstractmethod
    def remove(self, install_id: str) -> None:
        """
        Delete a record.

        :param install_id: The install identifier
        :type install_id: str
        :raises InstallNotFoundError: If no record exists
        """

    @abstractmethod
    def list_ids(self) -> list[str]:
        """
        Get the identifiers of all known installs.

        :returns: List of install identifiers
        :rtype: list[str]
        """
