from installflow.application.adapter import RetryPolicy, WorkflowParser
from installflow.application.port import ProgressStore
from installflow.application.service import InstallManager
from installflow.domain.entity import Command
from installflow.domain.value_object import ExecutionOptions, InstallerConfig
from installflow.infrastructure.adapter.in_memory.command_registry import InMemoryCommandRegistry
from installflow.infrastructure.adapter.in_memory.progress_store import InMemoryProgressStore
from installflow.infrastructure.adapter.in_memory.workflow_engine import InMemoryWorkflowEngine


class InMemoryInstallManager(InstallManager):
    pass


def create(
    commands: list[type[Command]],
    execution_options: ExecutionOptions | None = None,
    config: InstallerConfig | None = None,
    progress_store: ProgressStore | None = None,
) -> InMemoryInstallManager:
    """
    Creates an InMemoryInstallManager with the specified commands.

    :param commands: List of command classes to register
    :type commands: list[type[Command]]
    :param execution_options: Engine options
    :type execution_options: ExecutionOptions | None
    :param config: Installer configuration
    :type config: InstallerConfig | None
    :param progress_store: Store to use instead of a fresh in-memory one
    :type progress_store: ProgressStore | None
    :returns: Configured InMemoryInstallManager instance
    :rtype: InMemoryInstallManager
    """
    execution_options = execution_options if execution_options is not None else ExecutionOptions()
    registry = InMemoryCommandRegistry(commands)
    workflow_engine = InMemoryWorkflowEngine(
        execution_options=execution_options,
        retry_policy=RetryPolicy(base_sleep=execution_options.retry_backoff),
    )

    return InMemoryInstallManager(
        registry=registry,
        workflow_engine=workflow_engine,
        progress_store=progress_store if progress_store is not None else InMemoryProgressStore(),
        config=config,
        parser=WorkflowParser(registry),
    )
