"""
Tests for domain services.
"""

import pytest

from installflow.commands import Exec, Logger
from installflow.domain.entity import InstallProgress, Workflow
from installflow.domain.exception import InvalidTransitionError
from installflow.domain.service import CommandIDGenerator, UUIDGenerator, advance_progress, validate_workflow
from installflow.domain.value_object import InstallState


class TestValidateWorkflow:
    def test_valid_workflow(self):
        workflow = Workflow(id="wf", name="n", description="", commands=[Logger(msg="a"), Logger(msg="b")])

        assert validate_workflow(workflow) is True

    def test_empty_workflow(self):
        workflow = Workflow(id="wf", name="n", description="", commands=[])

        with pytest.raises(ValueError, match="no commands"):
            validate_workflow(workflow)

    def test_invalid_command(self):
        workflow = Workflow(id="wf", name="n", description="", commands=[Exec(cmd="")])

        with pytest.raises(ValueError, match="non-empty 'cmd'"):
            validate_workflow(workflow)

    def test_duplicate_command_ids(self):
        command = Logger(msg="a")
        workflow = Workflow(id="wf", name="n", description="", commands=[command, command])

        with pytest.raises(ValueError, match="Duplicate command id"):
            validate_workflow(workflow)


class TestGenerators:
    def test_uuid_generator(self):
        generated = UUIDGenerator().generate()

        assert len(generated) == 32
        int(generated, 16)

    def test_command_id_sequence(self):
        generator = CommandIDGenerator()

        assert generator.generate("exec") == "exec-000001"
        assert generator.generate("scp") == "scp-000002"

    def test_shared_generator_is_singleton(self):
        assert CommandIDGenerator.shared() is CommandIDGenerator.shared()


class TestAdvanceProgress:
    def test_valid_transition(self):
        current = InstallProgress(install_id="i1", state=InstallState.INIT)

        progress = advance_progress(current, InstallState.IN_PROGRESS)

        assert progress.state == InstallState.IN_PROGRESS
        assert progress.install_id == "i1"
        assert progress.updated_at > 0
        assert current.state == InstallState.INIT

    def test_error_is_recorded(self):
        current = InstallProgress(install_id="i1", state=InstallState.IN_PROGRESS)

        progress = advance_progress(current, InstallState.ERROR, "exec failed")

        assert progress.last_error == "exec failed"

    @pytest.mark.parametrize(
        "source,target",
        [
            (InstallState.FINISHED, InstallState.IN_PROGRESS),
            (InstallState.ERROR, InstallState.FINISHED),
            (InstallState.IN_PROGRESS, InstallState.INIT),
            (InstallState.INIT, InstallState.FINISHED),
            (InstallState.IN_PROGRESS, InstallState.IN_PROGRESS),
        ],
    )
    def test_invalid_transitions(self, source, target):
        current = InstallProgress(install_id="i1", state=source)

        with pytest.raises(InvalidTransitionError):
            advance_progress(current, target)
