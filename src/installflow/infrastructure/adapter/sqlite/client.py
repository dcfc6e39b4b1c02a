from installflow.application.adapter import RetryPolicy, WorkflowParser
from installflow.application.service import InstallManager
from installflow.domain.entity import Command
from installflow.domain.value_object import ExecutionOptions, InstallerConfig
from installflow.infrastructure.adapter.in_memory.command_registry import InMemoryCommandRegistry
from installflow.infrastructure.adapter.in_memory.workflow_engine import InMemoryWorkflowEngine
from installflow.infrastructure.adapter.sqlite.progress_store import SQLiteProgressStore


class SQLiteInstallManager(InstallManager):
    """Install manager keeping progress records in SQLite. Workflows still run in this process."""

    pass


def create(
    commands: list[type[Command]],
    db_path: str = ":memory:",
    execution_options: ExecutionOptions | None = None,
    config: InstallerConfig | None = None,
) -> SQLiteInstallManager:
    """
    Creates a SQLiteInstallManager with the specified commands and database path.

    :param commands: List of command classes to register
    :type commands: list[type[Command]]
    :param db_path: Path to SQLite database file (defaults to in-memory)
    :type db_path: str
    :param execution_options: Engine options
    :type execution_options: ExecutionOptions | None
    :param config: Installer configuration
    :type config: InstallerConfig | None
    :returns: Configured SQLiteInstallManager instance
    :rtype: SQLiteInstallManager
    """
    execution_options = execution_options if execution_options is not None else ExecutionOptions()
    registry = InMemoryCommandRegistry(commands)
    workflow_engine = InMemoryWorkflowEngine(
        execution_options=execution_options,
        retry_policy=RetryPolicy(base_sleep=execution_options.retry_backoff),
    )

    return SQLiteInstallManager(
        registry=registry,
        workflow_engine=workflow_engine,
        progress_store=SQLiteProgressStore(db_path=db_path),
        config=config,
        parser=WorkflowParser(registry),
    )
