import pytest

from command_doubles import AsyncRecord, Gate, Latch, Record, Rendezvous
from installflow.domain.value_object import InstallRequest, WorkflowParameters
from installflow.infrastructure.adapter.in_memory.command_registry import InMemoryCommandRegistry
from installflow.infrastructure.provider import load_commands


@pytest.fixture(autouse=True)
def reset_test_commands():
    Record.journal.clear()
    Gate.event.clear()
    Latch.event.clear()
    Rendezvous.barrier.reset()
    yield
    Gate.event.set()
    Latch.event.set()


@pytest.fixture
def test_commands():
    return {"Record": Record, "AsyncRecord": AsyncRecord, "Gate": Gate, "Latch": Latch}


@pytest.fixture
def commands(test_commands):
    return load_commands() + list(test_commands.values())


@pytest.fixture
def registry(commands):
    return InMemoryCommandRegistry(commands)


@pytest.fixture
def make_parameters():
    def build(num_nodes: int, install_id: str = "test-install-id") -> WorkflowParameters:
        return WorkflowParameters(
            install_request=InstallRequest(
                install_id=install_id,
                organization_id="test-org-id",
                cluster_id="test-cluster-id",
                nodes=[f"10.1.1.{i}" for i in range(num_nodes)],
            )
        )

    return build
