import itertools
import threading
import time
import uuid
from typing import TYPE_CHECKING

from installflow.domain.exception import InvalidTransitionError
from installflow.domain.value_object import INSTALL_TRANSITIONS, InstallState

if TYPE_CHECKING:
    from installflow.domain.entity import InstallProgress, Workflow


class UUIDGenerator:
    """Generates unique identifiers using UUID."""

    def generate(self) -> str:
        """
        Generate a unique identifier.

        :returns: A unique identifier string
        :rtype: str
        """
        return uuid.uuid4().hex


class CommandIDGenerator:
    """Derives command identifiers from the command name plus a process-wide sequence."""

    _shared: "CommandIDGenerator | None" = None
    _shared_lock = threading.Lock()

    def __init__(self):
        self._counter = itertools.count(1)
        self._lock = threading.Lock()

    @classmethod
    def shared(cls) -> "CommandIDGenerator":
        with cls._shared_lock:
            if cls._shared is None:
                cls._shared = cls()
            return cls._shared

    def generate(self, name: str) -> str:
        """
        Generate an identifier unique within the current process.

        :param name: The command name used as prefix
        :type name: str
        :returns: An identifier such as ``exec-000042``
        :rtype: str
        """
        with self._lock:
            sequence = next(self._counter)
        return f"{name or 'command'}-{sequence:06d}"


def validate_workflow(data: "Workflow") -> bool:
    """
    Validates the workflow structure and contents.

    :param data: The Workflow instance to validate
    :type data: Workflow
    :returns: True if the workflow is valid, raises ValueError otherwise
    :rtype: bool
    :raises ValueError: If the workflow structure or contents are invalid
    """
    if not data.commands:
        raise ValueError("Workflow has no commands")
    seen_ids = set()
    for command in data.commands:
        if command.command_id in seen_ids:
            raise ValueError(f"Duplicate command id found: {command.command_id}")
        seen_ids.add(command.command_id)
        command.validate()
    return True


def advance_progress(
    current: "InstallProgress", target: InstallState, error: str | None = None
) -> "InstallProgress":
    """
    Build the snapshot that follows ``current`` once it moves to ``target``.

    :param current: The current snapshot
    :type current: InstallProgress
    :param target: The requested state
    :type target: InstallState
    :param error: Error message recorded with the new snapshot
    :type error: str | None
    :returns: The new snapshot
    :rtype: InstallProgress
    :raises InvalidTransitionError: If ``target`` does not follow ``current.state``
    """
    if target not in INSTALL_TRANSITIONS[current.state]:
        raise InvalidTransitionError(current.install_id, current.state.value, target.value)
    return type(current)(
        install_id=current.install_id,
        state=target,
        last_error=error if error is not None else current.last_error,
        updated_at=time.time(),
    )
