import concurrent.futures
import functools
import threading
from collections.abc import Mapping
from typing import Any

import msgspec
from msgspec import structs
import structlog

from installflow.application.adapter import Poller, WorkflowParser
from installflow.application.port import CommandRegistry, ProgressStore, WorkflowEngine
from installflow.domain.entity import InstallProgress, Workflow, WorkflowResult
from installflow.domain.service import UUIDGenerator
from installflow.domain.value_object import InstallerConfig, InstallState, Paths, WorkflowParameters

logger = structlog.get_logger(__name__)


def install_id_from(params: Any) -> str | None:
    """
    Extract the install identifier carried by a parameter bag, if any.

    Works for ``WorkflowParameters`` objects and for ``{"InstallRequest": {"InstallId": ...}}`` mappings.
    """
    request = getattr(params, "install_request", None)
    if request is not None:
        return request.install_id or None
    if isinstance(params, dict):
        request = params.get("InstallRequest")
        if isinstance(request, dict):
            return request.get("InstallId") or None
    return None


class InstallManager:
    """
    Accepts install requests and tracks their progress.

    An install is parsed on the caller's thread, so definition errors are raised
    immediately and leave no record behind. Accepted installs run on a worker pool;
    callers get the install identifier back at once and poll ``check_progress``.

    .. note::
        Infrastructure wiring (registry, engine and progress store) is done in a
        composition root such as ``installflow.factory`` and injected here.
    """

    def __init__(
        self,
        registry: CommandRegistry,
        workflow_engine: WorkflowEngine,
        progress_store: ProgressStore,
        config: InstallerConfig | None = None,
        parser: WorkflowParser | None = None,
    ):
        self.registry = registry
        self.engine = workflow_engine
        self.progress_store = progress_store
        self.config = config if config is not None else InstallerConfig()
        self.parser = parser if parser is not None else WorkflowParser(registry)
        self.ids = UUIDGenerator()
        self._executor = concurrent.futures.ThreadPoolExecutor(
            max_workers=max(1, self.config.max_concurrent_installs), thread_name_prefix="install"
        )
        # install_id -> token of the run that owns the progress record
        self._runs: dict[str, str] = {}
        self._lock = threading.Lock()

    def parse(self, source: str, params: Any = None, name: str = "workflow") -> Workflow:
        """
        Parse a workflow source without running it.

        :param source: The templated workflow source
        :type source: str
        :param params: The parameter bag for the template
        :type params: Any
        :param name: Workflow name used in diagnostics
        :type name: str
        :returns: The parsed workflow
        :rtype: Workflow
        """
        return self.parser.parse(source, name, self._with_paths(params))

    def _with_paths(self, params: Any) -> Any:
        """Fill the template ``Paths`` from the installer config when the caller gave none."""
        if isinstance(params, WorkflowParameters):
            if params.paths == Paths():
                return structs.replace(params, paths=self.config.paths())
            return params
        if params is None:
            return {"Paths": msgspec.to_builtins(self.config.paths())}
        if isinstance(params, Mapping) and "Paths" not in params:
            return {**params, "Paths": msgspec.to_builtins(self.config.paths())}
        return params

    def explain(self, source: str, params: Any = None, name: str = "workflow") -> str:
        """
        Render the install plan without executing any command.

        :returns: One line per command, nested for composite commands
        :rtype: str
        """
        return self.parse(source, params, name).pretty_print()

    def start_install(
        self, source: str, params: Any = None, install_id: str | None = None, name: str = "install"
    ) -> str:
        """
        Accept an install and start running it in the background.

        :param source: The templated workflow source
        :type source: str
        :param params: The parameter bag for the template
        :type params: Any
        :param install_id: Identifier to use; defaults to the one in the parameters or a new uuid
        :type install_id: str | None
        :param name: Workflow name used in diagnostics
        :type name: str
        :returns: The install identifier
        :rtype: str
        :raises WorkflowDefinitionError: If the workflow cannot be parsed
        :raises InstallAlreadyExistsError: If the identifier is already tracked
        """
        workflow = self.parse(source, params, name)
        install_id = install_id or install_id_from(params) or self.ids.generate()
        run_id = self.ids.generate()
        with self._lock:
            self.progress_store.create(install_id)
            self._runs[install_id] = run_id
            future = self._executor.submit(self._run_install, install_id, run_id, workflow)
        logger.info("Install accepted", install_id=install_id, workflow_id=workflow.id, commands=len(workflow.commands))
        future.add_done_callback(functools.partial(self._run_done, install_id, run_id))
        return install_id

    def check_progress(self, install_id: str) -> InstallProgress:
        """
        Get the current progress of an install.

        :raises InstallNotFoundError: If the install is unknown or was removed
        """
        return self.progress_store.get(install_id)

    def remove_install(self, install_id: str) -> None:
        """
        Forget an install. A running workflow is not interrupted.

        :raises InstallNotFoundError: If the install is unknown
        """
        with self._lock:
            self.progress_store.remove(install_id)
            self._runs.pop(install_id, None)
        logger.info("Install removed", install_id=install_id)

    def list_installs(self) -> list[str]:
        return self.progress_store.list_ids()

    def wait(self, install_id: str, timeout: float = 300.0, interval: float | None = None) -> InstallProgress:
        """
        Block until the install reaches FINISHED or ERROR.

        :param install_id: The install identifier
        :type install_id: str
        :param timeout: Maximum number of seconds to wait
        :type timeout: float
        :param interval: Seconds between progress checks; defaults to the configured poll interval
        :type interval: float | None
        :returns: The terminal snapshot
        :rtype: InstallProgress
        :raises PollTimeoutError: If the install does not finish in time
        :raises InstallNotFoundError: If the install is unknown or removed while waiting
        """
        poller = Poller(interval=interval if interval is not None else self.config.poll_interval, timeout=timeout)

        def finished() -> InstallProgress | None:
            progress = self.check_progress(install_id)
            return progress if progress.state.terminal else None

        return poller.wait(finished, f"install {install_id}")

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)

    def _run_install(self, install_id: str, run_id: str, workflow: Workflow) -> WorkflowResult | None:
        if not self._advance(install_id, run_id, InstallState.IN_PROGRESS):
            return None
        try:
            result = self.engine.run(workflow)
        except Exception as e:
            logger.exception("Install aborted", install_id=install_id)
            self._advance(install_id, run_id, InstallState.ERROR, str(e) or type(e).__name__)
            return None
        if result.success:
            self._advance(install_id, run_id, InstallState.FINISHED)
        else:
            self._advance(install_id, run_id, InstallState.ERROR, result.error)
        return result

    def _advance(self, install_id: str, run_id: str, state: InstallState, error: str | None = None) -> bool:
        # Only the run that created the current record may write to it.
        with self._lock:
            if self._runs.get(install_id) != run_id:
                logger.info("Dropping update for removed install", install_id=install_id, state=state.value)
                return False
            self.progress_store.transition(install_id, state, error)
        return True

    def _run_done(self, install_id: str, run_id: str, future: concurrent.futures.Future) -> None:
        with self._lock:
            if self._runs.get(install_id) == run_id:
                del self._runs[install_id]
        if future.cancelled():
            return
        exc = future.exception()
        if exc is not None:
            logger.error("Install run crashed", install_id=install_id, exc_info=exc)
