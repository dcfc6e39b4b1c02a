import sys

import pytest
from structlog.testing import capture_logs

from installflow.commands import SCP, AsyncSleep, Exec, Fail, Logger, Sleep
from installflow.domain.exception import CommandTransportError
from installflow.domain.value_object import CommandCategory, Credentials


class TestExec:
    def test_captures_output(self):
        command = Exec(cmd=sys.executable, args=["-c", "print('hello')"])

        result = command.run("wf")

        assert result.success
        assert result.output.strip() == "hello"

    def test_non_zero_exit_is_a_failure(self):
        command = Exec(cmd=sys.executable, args=["-c", "import sys; sys.exit(3)"])

        result = command.run("wf")

        assert not result.success
        assert "code 3" in result.error

    def test_timeout_is_a_failure(self):
        command = Exec(cmd=sys.executable, args=["-c", "import time; time.sleep(5)"], timeout=0.2)

        result = command.run("wf")

        assert not result.success
        assert "timed out" in result.error

    def test_missing_binary_raises(self):
        command = Exec(cmd="/nonexistent/installflow-binary")

        with pytest.raises(CommandTransportError):
            command.run("wf")

    def test_str(self):
        assert str(Exec(cmd="kubectl", args=["apply", "-f", "x.yaml"])) == "SYNC Exec: kubectl apply -f x.yaml"
        assert Exec(cmd="kubectl").user_string() == "Executing kubectl"


class TestSCP:
    def make(self, **credentials):
        return SCP(
            target_host="10.0.0.1",
            credentials=Credentials(username="root", **credentials),
            source="script.sh",
            destination="/opt/scripts/.",
        )

    def test_args_with_key(self):
        args = self.make(private_key="KEY").build_args("/tmp/key")

        assert args[0] == "scp"
        assert args[args.index("-i") + 1] == "/tmp/key"
        assert args[-2:] == ["script.sh", "root@10.0.0.1:/opt/scripts/."]

    def test_args_with_password(self):
        args = self.make(password="secret").build_args()

        assert args[:3] == ["sshpass", "-p", "secret"]
        assert "-i" not in args

    def test_missing_source_is_a_failure(self, tmp_path):
        command = SCP(
            target_host="10.0.0.1",
            credentials=Credentials(username="root"),
            source=str(tmp_path / "missing.sh"),
            destination="/opt/.",
        )

        result = command.run("wf")

        assert not result.success
        assert "does not exist" in result.error

    def test_validate_requires_username(self):
        with pytest.raises(ValueError, match="username"):
            SCP(target_host="h", credentials=Credentials(username=""), source="a", destination="b").validate()


class TestBasicCommands:
    def test_logger(self):
        with capture_logs() as logs:
            result = Logger(msg="installing").run("wf")

        assert result.success
        assert result.output == "installing"
        assert logs[0]["msg"] == "installing"
        assert logs[0]["workflow_id"] == "wf"

    def test_fail(self):
        result = Fail().run("wf")

        assert not result.success
        assert result.output == "Fail command"

    def test_sleep(self):
        result = Sleep(duration="0").run("wf")

        assert result.success
        assert result.output == "Slept for 0"

    @pytest.mark.parametrize("duration", ["soon", "-1"])
    def test_sleep_rejects_invalid_time(self, duration):
        with pytest.raises(ValueError):
            Sleep(duration=duration).validate()

    def test_async_variant_keeps_name(self):
        assert AsyncSleep.command_name == "sleep"
        assert AsyncSleep.category == CommandCategory.ASYNC
        assert str(AsyncSleep(duration="2")) == "ASYNC Sleep 2s"
