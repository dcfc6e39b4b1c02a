"""
Tests for the SQLite-backed install manager.
"""

from installflow.domain.value_object import ExecutionOptions, InstallState
from installflow.infrastructure.adapter.sqlite.client import SQLiteInstallManager, create
from installflow.infrastructure.provider import load_commands

WORKFLOW = """
{
 "description": "sqlite",
 "commands": [
  {"type":"sync", "name": "logger", "msg": "starting"},
  {"type":"sync", "name": "try", "cmd": {"type":"sync", "name": "fail"},
   "onFail": {"type":"async", "name": "logger", "msg": "recovered"}}
 ]
}
"""


class TestSQLiteInstallManager:
    def test_create(self):
        manager = create(load_commands())

        assert isinstance(manager, SQLiteInstallManager)
        manager.shutdown()

    def test_progress_is_persisted(self, tmp_path):
        """Test a finished install is visible to a second manager on the same database."""
        db_path = str(tmp_path / "installs.db")
        manager = create(load_commands(), db_path=db_path, execution_options=ExecutionOptions(retry_backoff=0))
        install_id = manager.start_install(WORKFLOW, install_id="persisted")
        assert manager.wait(install_id, timeout=5, interval=0.01).state == InstallState.FINISHED
        manager.shutdown()
        manager.progress_store.close()

        other = create(load_commands(), db_path=db_path)
        try:
            assert other.check_progress("persisted").state == InstallState.FINISHED
        finally:
            other.shutdown()
            other.progress_store.close()
