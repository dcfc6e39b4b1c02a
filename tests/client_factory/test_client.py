"""
Tests for the Client façade.

This module tests that the client delegates to its install manager and that
collaborator commands can be registered through it.
"""

from unittest.mock import Mock

import pytest

from command_doubles import Record
from installflow import BackendType, create
from installflow.application.service import InstallManager
from installflow.client import Client
from installflow.domain.exception import InstallNotFoundError
from installflow.domain.value_object import InstallState

RECORD_WORKFLOW = '{"description": "record", "commands": [{"type":"sync", "name":"record", "label":"x"}]}'


class TestClientDelegation:
    """Test cases for Client delegation with a mocked manager."""

    def setup_method(self):
        self.manager = Mock(spec=InstallManager)
        self.client = Client(self.manager)

    def test_start_install(self):
        self.manager.start_install.return_value = "install-1"

        assert self.client.start_install("src", {"A": 1}, install_id="install-1") == "install-1"
        self.manager.start_install.assert_called_once_with("src", {"A": 1}, install_id="install-1", name="install")

    def test_check_progress(self):
        self.client.check_progress("install-1")

        self.manager.check_progress.assert_called_once_with("install-1")

    def test_remove_install(self):
        assert self.client.remove_install("install-1") is True
        self.manager.remove_install.assert_called_once_with("install-1")

    def test_remove_unknown_install(self):
        self.manager.remove_install.side_effect = InstallNotFoundError("missing")

        with pytest.raises(InstallNotFoundError):
            self.client.remove_install("missing")

    def test_registered_commands_requires_listing_support(self):
        self.manager.registry = object()

        with pytest.raises(NotImplementedError):
            self.client.registered_commands()


class TestClientCommands:
    def setup_method(self):
        self.client = create(BackendType.IN_MEMORY)

    def teardown_method(self):
        self.client.shutdown()

    def test_command_registration_is_chainable(self):
        """Test .command() returns the client."""
        assert self.client.command(Record) is self.client
        assert ("sync", "record") in self.client.registered_commands()

    def test_registered_command_runs(self):
        install_id = self.client.command(Record).start_install(RECORD_WORKFLOW, install_id="rec")

        progress = self.client.wait(install_id, timeout=5, interval=0.01)

        assert progress.state == InstallState.FINISHED
        assert Record.journal == ["x"]

    def test_registration_closed_after_parse(self):
        """Test commands cannot be added once workflows are parsed."""
        self.client.parse('{"description": "d", "commands": [{"type":"sync", "name":"fail"}]}')

        with pytest.raises(RuntimeError):
            self.client.command(Record)

    def test_explain(self):
        plan = self.client.explain(
            '{"description": "d", "commands": [{"type":"sync", "name":"exec", "cmd":"kubectl", "args":["get","nodes"]}]}',
            name="plan",
        )

        assert plan == "Workflow plan: d\n  SYNC Exec: kubectl get nodes"
