import os
import subprocess
import tempfile
import time
from typing import ClassVar

import msgspec
import structlog

from installflow.domain.entity import Command, CommandResult
from installflow.domain.exception import CommandTransportError
from installflow.domain.value_object import CommandCategory, Credentials

logger = structlog.get_logger(__name__)


class Exec(Command, kw_only=True, forbid_unknown_fields=True):
    """Runs a local executable and captures its output."""

    command_name: ClassVar[str] = "exec"
    category: ClassVar[CommandCategory] = CommandCategory.SYNC

    cmd: str
    args: list[str] = []
    timeout: float | None = None

    def validate(self) -> None:
        if not self.cmd:
            raise ValueError("exec requires a non-empty 'cmd'")

    def run(self, workflow_id: str) -> CommandResult:
        logger.debug("Executing", workflow_id=workflow_id, cmd=self.cmd, args=self.args)
        try:
            completed = subprocess.run(
                [self.cmd, *self.args], capture_output=True, text=True, timeout=self.timeout
            )
        except OSError as e:
            raise CommandTransportError(f"cannot execute {self.cmd}: {e}") from e
        except subprocess.TimeoutExpired:
            return CommandResult.failed("", f"{self.cmd} timed out after {self.timeout}s")
        output = completed.stdout + completed.stderr
        if completed.returncode != 0:
            return CommandResult.failed(output, f"{self.cmd} exited with code {completed.returncode}")
        return CommandResult.ok(output)

    def __str__(self) -> str:
        return " ".join([f"{self.category.value.upper()} Exec:", self.cmd, *self.args])

    def user_string(self) -> str:
        return f"Executing {self.cmd}"


class SCP(Command, kw_only=True, forbid_unknown_fields=True):
    """Copies a local file to a remote host with the system ``scp`` client."""

    command_name: ClassVar[str] = "scp"
    category: ClassVar[CommandCategory] = CommandCategory.SYNC

    target_host: str
    credentials: Credentials
    source: str
    destination: str

    def validate(self) -> None:
        if not self.target_host:
            raise ValueError("scp requires a 'targetHost'")
        if not self.credentials.username:
            raise ValueError("scp requires a username")

    def build_args(self, key_path: str | None = None) -> list[str]:
        """
        Build the argument vector for the copy.

        :param key_path: Path of a private key file, if key authentication is used
        :type key_path: str | None
        :returns: The command line to execute
        :rtype: list[str]
        """
        args = ["scp", "-o", "StrictHostKeyChecking=no", "-o", "UserKnownHostsFile=/dev/null"]
        if key_path:
            args.extend(["-i", key_path])
        elif self.credentials.password:
            args = ["sshpass", "-p", self.credentials.password, *args]
        target = f"{self.credentials.username}@{self.target_host}:{self.destination}"
        return [*args, self.source, target]

    def run(self, workflow_id: str) -> CommandResult:
        if not os.path.exists(self.source):
            return CommandResult.failed("", f"source file {self.source} does not exist")
        key_file = None
        try:
            if self.credentials.private_key:
                key_file = tempfile.NamedTemporaryFile("w", prefix="scp-key-", delete=False)
                with key_file:
                    key_file.write(self.credentials.private_key)
                os.chmod(key_file.name, 0o600)
            args = self.build_args(key_file.name if key_file else None)
            try:
                completed = subprocess.run(args, capture_output=True, text=True)
            except OSError as e:
                raise CommandTransportError(f"cannot run {args[0]}: {e}") from e
        finally:
            if key_file is not None:
                os.unlink(key_file.name)
        if completed.returncode != 0:
            return CommandResult.failed(
                completed.stderr, f"scp to {self.target_host} exited with code {completed.returncode}"
            )
        logger.info("File copied", workflow_id=workflow_id, source=self.source, target_host=self.target_host)
        return CommandResult.ok(f"{self.source} copied to {self.target_host}:{self.destination}")

    def __str__(self) -> str:
        return (
            f"{self.category.value.upper()} SCP {self.source} to "
            f"{self.credentials.username}@{self.target_host}:{self.destination}"
        )

    def user_string(self) -> str:
        return f"Copying {os.path.basename(self.source)} to {self.target_host}"


class Logger(Command, kw_only=True, forbid_unknown_fields=True):
    """Logs a message. Mostly useful to mark progress inside a workflow."""

    command_name: ClassVar[str] = "logger"
    category: ClassVar[CommandCategory] = CommandCategory.SYNC

    msg: str

    def run(self, workflow_id: str) -> CommandResult:
        logger.info("Workflow message", workflow_id=workflow_id, msg=self.msg)
        return CommandResult.ok(self.msg)

    def __str__(self) -> str:
        return f"{self.category.value.upper()} Logger: {self.msg}"

    def user_string(self) -> str:
        return self.msg


class Fail(Command, kw_only=True, forbid_unknown_fields=True):
    """Always fails. Used to exercise fallbacks and fail-fast behaviour."""

    command_name: ClassVar[str] = "fail"
    category: ClassVar[CommandCategory] = CommandCategory.SYNC

    def run(self, workflow_id: str) -> CommandResult:
        return CommandResult.failed("Fail command", "command failed on purpose")

    def __str__(self) -> str:
        return f"{self.category.value.upper()} Fail"

    def user_string(self) -> str:
        return "Failing"


class Sleep(Command, kw_only=True, forbid_unknown_fields=True):
    """Sleeps for a number of seconds."""

    command_name: ClassVar[str] = "sleep"
    category: ClassVar[CommandCategory] = CommandCategory.SYNC

    duration: str = msgspec.field(default="0", name="time")

    @property
    def seconds(self) -> float:
        return float(self.duration)

    def validate(self) -> None:
        try:
            seconds = self.seconds
        except ValueError:
            raise ValueError(f"invalid sleep time: {self.duration!r}") from None
        if seconds < 0:
            raise ValueError(f"sleep time must not be negative: {self.duration!r}")

    def run(self, workflow_id: str) -> CommandResult:
        time.sleep(self.seconds)
        return CommandResult.ok(f"Slept for {self.duration}")

    def __str__(self) -> str:
        return f"{self.category.value.upper()} Sleep {self.duration}s"

    def user_string(self) -> str:
        return f"Waiting {self.duration} seconds"
