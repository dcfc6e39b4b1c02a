from dataclasses import dataclass
from enum import Enum

import msgspec


@dataclass
class ExecutionOptions:
    retries: int = 0
    retry_backoff: float = 0.1
    concurrent_async: bool = True
    async_workers: int = 4

    def __post_init__(self):
        if self.retries < 0:
            raise ValueError(f"retries must not be negative, got {self.retries}")


@dataclass
class InstallerConfig:
    components_path: str = "./assets/"
    binary_path: str = "./bin/"
    temp_path: str = "./temp/"
    max_concurrent_installs: int = 4
    poll_interval: float = 1.0

    def paths(self) -> "Paths":
        """Paths handed to templates when the caller supplies none."""
        return Paths(
            components_path=self.components_path,
            binary_path=self.binary_path,
            temp_path=self.temp_path,
        )


class CommandCategory(str, Enum):
    SYNC = "sync"
    ASYNC = "async"


class WorkflowResultStatus(str, Enum):
    SUCCESS = "success"
    FAILED = "failed"


class InstallState(str, Enum):
    INIT = "INIT"
    IN_PROGRESS = "IN_PROGRESS"
    FINISHED = "FINISHED"
    ERROR = "ERROR"

    @property
    def terminal(self) -> bool:
        return self in (InstallState.FINISHED, InstallState.ERROR)


# Allowed successors for each state; terminal states have none.
INSTALL_TRANSITIONS: dict[InstallState, frozenset[InstallState]] = {
    InstallState.INIT: frozenset({InstallState.IN_PROGRESS, InstallState.ERROR}),
    InstallState.IN_PROGRESS: frozenset({InstallState.FINISHED, InstallState.ERROR}),
    InstallState.FINISHED: frozenset(),
    InstallState.ERROR: frozenset(),
}


class Credentials(msgspec.Struct, rename="camel", forbid_unknown_fields=True):
    """SSH credentials used to reach a remote node."""

    username: str
    password: str = ""
    private_key: str = ""


class InstallRequest(msgspec.Struct, kw_only=True, rename="pascal"):
    """Request to install a cluster, exposed to templates as ``InstallRequest``."""

    install_id: str
    organization_id: str = ""
    cluster_id: str = ""
    cluster_type: str = "KUBERNETES"
    install_base_system: bool = False
    kube_config_raw: str = ""
    hostname: str = ""
    username: str = ""
    private_key: str = ""
    nodes: list[str] = []
    target_platform: str = "MINIKUBE"


class Paths(msgspec.Struct, kw_only=True, rename="pascal"):
    """Filesystem locations available to templates as ``Paths``."""

    components_path: str = ""
    binary_path: str = ""
    temp_path: str = ""


class WorkflowParameters(msgspec.Struct, kw_only=True, rename="pascal"):
    """
    Root object for template rendering.

    Rendered with PascalCase keys, so a template reads ``{{ InstallRequest.InstallId }}``
    or iterates ``{% for node in InstallRequest.Nodes %}``.
    """

    install_request: InstallRequest
    paths: Paths = msgspec.field(default_factory=Paths)
