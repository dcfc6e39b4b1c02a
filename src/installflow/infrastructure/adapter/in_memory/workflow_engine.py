import concurrent.futures

import structlog

from installflow.application.adapter import RetryPolicy
from installflow.application.port import WorkflowEngine
from installflow.domain.entity import Command, CommandResult, Workflow, WorkflowResult
from installflow.domain.value_object import CommandCategory, ExecutionOptions, WorkflowResultStatus

logger = structlog.get_logger(__name__)


class InMemoryWorkflowEngine(WorkflowEngine):
    """
    Runs the commands of a workflow in order within the current process.

    Sync commands run one after the other. Async commands are handed to a thread
    pool when ``concurrent_async`` is enabled; every pending async result is joined
    before the next sync command starts and before the workflow finishes, so the
    first failure in array order always stops the remaining commands.
    """

    def __init__(self, execution_options: ExecutionOptions | None = None, retry_policy: RetryPolicy | None = None):
        """
        Initializes with execution options and an optional retry policy.

        :param execution_options: Retries and async dispatch settings
        :type execution_options: ExecutionOptions | None
        :param retry_policy: Policy used when a command raises
        :type retry_policy: RetryPolicy | None
        """
        self.execution_options = execution_options if execution_options is not None else ExecutionOptions()
        self.retry_policy = (
            retry_policy if retry_policy is not None else RetryPolicy(self.execution_options.retry_backoff)
        )

    def run(self, workflow: Workflow) -> WorkflowResult:
        """
        Executes each command of the workflow in order and returns a WorkflowResult.

        :param workflow: The workflow to execute
        :type workflow: Workflow
        :returns: The result of executing the workflow
        :rtype: WorkflowResult
        """
        results: list[CommandResult] = []
        pending: list[tuple[Command, concurrent.futures.Future]] = []
        error_msg = None
        options = self.execution_options
        with concurrent.futures.ThreadPoolExecutor(max_workers=max(1, options.async_workers)) as executor:
            for command in workflow.commands:
                if command.category == CommandCategory.ASYNC and options.concurrent_async:
                    logger.debug("Dispatching async command", workflow_id=workflow.id, command_id=command.command_id)
                    pending.append((command, executor.submit(self._execute, command, workflow.id)))
                    continue
                error_msg = self._join(pending, results)
                pending = []
                if error_msg is not None:
                    break
                result = self._execute(command, workflow.id)
                results.append(result)
                if not result.success:
                    error_msg = self._failure_message(command, result)
                    break
            else:
                error_msg = self._join(pending, results)

        status = WorkflowResultStatus.FAILED if error_msg is not None else WorkflowResultStatus.SUCCESS
        logger.info("Workflow finished", workflow=workflow.name, workflow_id=workflow.id, status=status.value)
        return WorkflowResult(id=workflow.id, status=status, results=results, error=error_msg)

    def _execute(self, command: Command, workflow_id: str) -> CommandResult:
        logger.info("Running command", workflow_id=workflow_id, command=str(command))
        try:
            return self.retry_policy.run(lambda: command.run(workflow_id), self.execution_options.retries)
        except Exception as e:
            logger.error("Command could not run", workflow_id=workflow_id, command_id=command.command_id, error=str(e))
            return CommandResult.failed("", str(e) or type(e).__name__)

    def _join(self, pending: list[tuple[Command, concurrent.futures.Future]], results: list[CommandResult]) -> str | None:
        """Wait for every pending async command and return the first failure in dispatch order."""
        error_msg = None
        for command, future in pending:
            result = future.result()
            results.append(result)
            if not result.success and error_msg is None:
                error_msg = self._failure_message(command, result)
        return error_msg

    @staticmethod
    def _failure_message(command: Command, result: CommandResult) -> str:
        detail = result.error or result.output or "command failed"
        return f"{command.name} ({command.command_id}): {detail}"
