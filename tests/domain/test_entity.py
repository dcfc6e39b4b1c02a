"""
Tests for domain entities.

This module tests the core domain entities including:
- CommandResult
- Command identifiers and renderers
- Workflow and WorkflowResult
- InstallProgress
"""

import json
from typing import ClassVar

import msgspec
import pytest

from installflow.commands import Exec, Fail, Logger, Try
from installflow.domain.entity import Command, CommandResult, InstallProgress, Workflow, WorkflowResult
from installflow.domain.value_object import CommandCategory, InstallState, WorkflowResultStatus


class TestCommandResult:
    """Test cases for CommandResult."""

    def test_ok(self):
        result = CommandResult.ok("done")

        assert result.success is True
        assert result.output == "done"
        assert result.error is None

    def test_failed(self):
        result = CommandResult.failed("partial output", "boom")

        assert result.success is False
        assert result.output == "partial output"
        assert result.error == "boom"

    def test_result_is_immutable(self):
        result = CommandResult.ok("done")

        with pytest.raises(AttributeError):
            result.success = False


class TestCommand:
    """Test cases for the Command base behaviour."""

    def test_run_must_be_implemented(self):
        class Incomplete(Command, kw_only=True):
            command_name: ClassVar[str] = "incomplete"

        with pytest.raises(NotImplementedError, match="Incomplete"):
            Incomplete().run("wf")

    def test_command_id_derived_from_name(self):
        command = Exec(cmd="ls")

        assert command.command_id.startswith("exec-")

    def test_command_ids_are_unique(self):
        ids = {Logger(msg="m").command_id for _ in range(100)}

        assert len(ids) == 100

    def test_command_id_is_not_taken_from_input(self):
        command = Exec(cmd="ls", command_id="chosen")

        assert command.command_id != "chosen"

    def test_name_and_category(self):
        command = Exec(cmd="ls")

        assert command.name == "exec"
        assert command.category == CommandCategory.SYNC

    def test_renderers(self):
        command = Exec(cmd="ls", args=["-l", "/tmp"])

        assert str(command) == "SYNC Exec: ls -l /tmp"
        assert command.pretty_print(2) == "  SYNC Exec: ls -l /tmp"
        assert command.user_string() == "Executing ls"

    def test_encoding_uses_camel_case(self):
        command = Try(try_command=Logger(msg="a"), on_fail_command=Fail())

        encoded = json.loads(msgspec.json.encode(command))

        assert encoded["cmd"]["msg"] == "a"
        assert "onFail" in encoded
        assert "commandId" in encoded


class TestWorkflow:
    """Test cases for Workflow."""

    def test_create_workflow(self):
        commands = [Logger(msg="one"), Logger(msg="two")]
        workflow = Workflow(id="wf", name="test", description="desc", commands=commands)

        assert workflow.id == "wf"
        assert [c.msg for c in workflow.commands] == ["one", "two"]

    def test_workflow_is_frozen(self):
        workflow = Workflow(id="wf", name="test", description="desc", commands=[])

        with pytest.raises(AttributeError):
            workflow.description = "changed"

    def test_pretty_print(self):
        workflow = Workflow(
            id="wf",
            name="test",
            description="desc",
            commands=[Logger(msg="one"), Try(try_command=Fail(), on_fail_command=Logger(msg="two"))],
        )

        lines = workflow.pretty_print().splitlines()

        assert lines[0] == "Workflow test: desc"
        assert lines[1] == "  SYNC Logger: one"
        assert lines[2] == "  SYNC Try"
        assert "      SYNC Fail" in lines
        assert lines[-1] == "      SYNC Logger: two"

    def test_user_strings(self):
        workflow = Workflow(id="wf", name="test", description="", commands=[Exec(cmd="rke"), Logger(msg="hi")])

        assert workflow.user_strings() == ["Executing rke", "hi"]


class TestWorkflowResult:
    """Test cases for WorkflowResult."""

    def test_success(self):
        result = WorkflowResult(id="wf", status=WorkflowResultStatus.SUCCESS, results=[CommandResult.ok("x")])

        assert result.success is True
        assert result.error is None

    def test_failure(self):
        result = WorkflowResult(id="wf", status=WorkflowResultStatus.FAILED, results=[], error="exec failed")

        assert result.success is False

    def test_to_dict_and_json(self):
        result = WorkflowResult(id="wf", status=WorkflowResultStatus.SUCCESS, results=[CommandResult.ok("x")])

        data = result.to_dict()
        assert data["status"] == "success"
        assert data["results"][0]["output"] == "x"
        assert json.loads(result.to_json()) == data


class TestInstallProgress:
    """Test cases for InstallProgress."""

    def test_defaults(self):
        progress = InstallProgress(install_id="i1", state=InstallState.INIT)

        assert progress.last_error is None
        assert progress.to_dict()["state"] == "INIT"

    def test_snapshot_is_immutable(self):
        progress = InstallProgress(install_id="i1", state=InstallState.INIT)

        with pytest.raises(AttributeError):
            progress.state = InstallState.FINISHED
