"""
installflow - Cluster install workflows

Parses templated JSON workflow definitions into typed commands, runs them in
order with fallback support, and tracks install progress for polling clients.
"""

from installflow.backend import BackendType
from installflow.client import Client
from installflow.domain.entity import Command, CommandResult, InstallProgress, Workflow, WorkflowResult
from installflow.domain.value_object import (
    CommandCategory,
    ExecutionOptions,
    InstallerConfig,
    InstallRequest,
    InstallState,
    Paths,
    WorkflowParameters,
)
from installflow.factory import create
from installflow.logging_config import configure_logging

__all__ = [
    "Client",
    "BackendType",
    "create",
    "configure_logging",
    "Command",
    "CommandCategory",
    "CommandResult",
    "ExecutionOptions",
    "InstallerConfig",
    "InstallProgress",
    "InstallRequest",
    "InstallState",
    "Paths",
    "Workflow",
    "WorkflowParameters",
    "WorkflowResult",
]
