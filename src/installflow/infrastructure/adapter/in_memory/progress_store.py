import threading
import time

from installflow.application.port import ProgressStore
from installflow.domain.entity import InstallProgress
from installflow.domain.exception import InstallAlreadyExistsError, InstallNotFoundError
from installflow.domain.service import advance_progress
from installflow.domain.value_object import InstallState


class InMemoryProgressStore(ProgressStore):
    """
    Keeps one immutable ``InstallProgress`` snapshot per install.

    Writers swap whole snapshots under a lock, so readers always get a complete record.
    """

    def __init__(self):
        self._store: dict[str, InstallProgress] = {}
        self._lock = threading.Lock()

    def create(self, install_id: str) -> InstallProgress:
        with self._lock:
            if install_id in self._store:
                raise InstallAlreadyExistsError(install_id)
            progress = InstallProgress(install_id=install_id, state=InstallState.INIT, updated_at=time.time())
            self._store[install_id] = progress
            return progress

    def transition(self, install_id: str, state: InstallState, error: str | None = None) -> InstallProgress:
        with self._lock:
            try:
                current = self._store[install_id]
            except KeyError:
                raise InstallNotFoundError(install_id) from None
            progress = advance_progress(current, state, error)
            self._store[install_id] = progress
            return progress

    def get(self, install_id: str) -> InstallProgress:
        with self._lock:
            try:
                return self._store[install_id]
            except KeyError:
                raise InstallNotFoundError(install_id) from None

    def remove(self, install_id: str) -> None:
        with self._lock:
            if self._store.pop(install_id, None) is None:
                raise InstallNotFoundError(install_id)

    def list_ids(self) -> list[str]:
        with self._lock:
            return sorted(self._store)
