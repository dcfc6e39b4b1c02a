class InstallflowError(Exception):
    """Base class for every error raised by installflow."""


class WorkflowDefinitionError(InstallflowError, ValueError):
    """A workflow source could not be turned into a Workflow. No partial workflow is returned."""

    def __init__(self, message: str, workflow_name: str | None = None):
        self.workflow_name = workflow_name
        if workflow_name:
            message = f"{workflow_name}: {message}"
        super().__init__(message)

    def attach(self, workflow_name: str, location: str) -> "WorkflowDefinitionError":
        """Record the workflow and position of the failure unless already known."""
        if self.workflow_name is None:
            self.workflow_name = workflow_name
            self.args = (f"{workflow_name}: {location}: {self.args[0]}",)
        return self


class TemplateError(WorkflowDefinitionError):
    """The template has a syntax error or references a missing parameter."""


class MalformedDefinitionError(WorkflowDefinitionError):
    """The rendered text is not a valid workflow definition."""


class UnknownCommandError(WorkflowDefinitionError):
    """No decoder is registered for a (category, name) pair."""

    def __init__(self, category: str, name: str, workflow_name: str | None = None):
        self.category = category
        self.name = name
        super().__init__(f"unknown command type={category!r} name={name!r}", workflow_name)


class CommandTransportError(InstallflowError):
    """A command could not even attempt its effect (e.g. the backend is unreachable)."""


class InstallNotFoundError(InstallflowError, KeyError):
    """No progress record exists for the install identifier."""

    def __init__(self, install_id: str):
        self.install_id = install_id
        super().__init__(install_id)

    def __str__(self) -> str:
        return f"install '{self.install_id}' not found"


class InstallAlreadyExistsError(InstallflowError):
    def __init__(self, install_id: str):
        self.install_id = install_id
        super().__init__(f"install '{install_id}' already exists")


class InvalidTransitionError(InstallflowError):
    def __init__(self, install_id: str, current: str, target: str):
        self.install_id = install_id
        self.current = current
        self.target = target
        super().__init__(f"install '{install_id}' cannot move from {current} to {target}")


class PollTimeoutError(InstallflowError, TimeoutError):
    """The polled condition did not hold before the deadline."""
