import signal
import sys
from pathlib import Path

import anyio
import pytest
from pytest_mock import MockerFixture

from nodesup.exceptions import (
    AlreadyRunningError,
    ConfigParseError,
    NotRunningError,
    ProcessSpawnError,
)
from nodesup.supervisor import (
    NotStarted,
    ProcessSupervisor,
    Running,
    SupervisorConfig,
)


class FakeProcess:
    """Stands in for an anyio Process; exits when signalled."""

    def __init__(
        self,
        *,
        ignore_term: bool = False,
        signal_error: OSError | None = None,
    ) -> None:
        self.pid = 4242
        self.returncode: int | None = None
        self.signals: list[int] = []
        self._ignore_term = ignore_term
        self._signal_error = signal_error
        self._exited = anyio.Event()

    def exit(self, code: int) -> None:
        self.returncode = code
        self._exited.set()

    def send_signal(self, sig: int) -> None:
        if self._signal_error is not None:
            raise self._signal_error
        self.signals.append(sig)
        if not self._ignore_term:
            self.exit(-sig)

    def kill(self) -> None:
        self.signals.append(signal.SIGKILL)
        self.exit(-signal.SIGKILL)

    async def wait(self) -> int:
        await self._exited.wait()
        assert self.returncode is not None
        return self.returncode


def _running(supervisor: ProcessSupervisor, primary: FakeProcess) -> None:
    supervisor._state = Running(  # pyright: ignore[reportPrivateUsage]
        primary=primary,  # type: ignore[arg-type]
        log_sink=FakeProcess(),  # type: ignore[arg-type]
        started_at="2026-01-01T00:00:00Z",
    )


@pytest.fixture
def config(tmp_path: Path) -> SupervisorConfig:
    return SupervisorConfig(
        working_dir=tmp_path,
        log_file=tmp_path / "node.log",
        shutdown_timeout=0.1,
    )


class TestInitialState:
    def test_starts_not_started(self, config: SupervisorConfig) -> None:
        supervisor = ProcessSupervisor(config)

        assert isinstance(supervisor.state, NotStarted)
        assert not supervisor.is_running()


@pytest.mark.anyio
class TestIsRunning:
    async def test_live_process_is_running(self, config: SupervisorConfig) -> None:
        supervisor = ProcessSupervisor(config)
        _running(supervisor, FakeProcess())

        assert supervisor.is_running()

    async def test_exited_process_is_not_running(
        self, config: SupervisorConfig
    ) -> None:
        supervisor = ProcessSupervisor(config)
        primary = FakeProcess()
        primary.exit(0)
        _running(supervisor, primary)

        assert not supervisor.is_running()
        assert isinstance(supervisor.state, Running)


@pytest.mark.anyio
class TestRun:
    async def test_malformed_env_spawns_nothing(
        self, config: SupervisorConfig, mocker: MockerFixture
    ) -> None:
        open_process = mocker.patch("anyio.open_process", new_callable=mocker.AsyncMock)
        supervisor = ProcessSupervisor(config)

        with pytest.raises(ConfigParseError):
            await supervisor.run("FOO", "")

        open_process.assert_not_called()
        assert isinstance(supervisor.state, NotStarted)

    async def test_already_running_spawns_nothing(
        self, config: SupervisorConfig, mocker: MockerFixture
    ) -> None:
        open_process = mocker.patch("anyio.open_process", new_callable=mocker.AsyncMock)
        supervisor = ProcessSupervisor(config)
        primary = FakeProcess()
        _running(supervisor, primary)

        with pytest.raises(AlreadyRunningError):
            await supervisor.run("", "")

        open_process.assert_not_called()
        assert supervisor.state.primary is primary  # type: ignore[union-attr]

    async def test_spawn_failure_leaves_not_started(
        self, config: SupervisorConfig, mocker: MockerFixture
    ) -> None:
        _ = mocker.patch(
            "anyio.open_process",
            new_callable=mocker.AsyncMock,
            side_effect=FileNotFoundError(2, "No such file or directory", "cargo"),
        )
        supervisor = ProcessSupervisor(config)

        with pytest.raises(ProcessSpawnError) as exc_info:
            await supervisor.run("", "--port 3485")

        assert exc_info.value.command == ("cargo", "run", "--", "--port", "3485")
        assert isinstance(supervisor.state, NotStarted)

    async def test_sink_failure_kills_primary(
        self, config: SupervisorConfig, mocker: MockerFixture
    ) -> None:
        primary = FakeProcess(ignore_term=True)
        _ = mocker.patch(
            "anyio.open_process",
            new_callable=mocker.AsyncMock,
            side_effect=[primary, PermissionError(13, "Permission denied")],
        )
        supervisor = ProcessSupervisor(config)

        with pytest.raises(ProcessSpawnError) as exc_info:
            await supervisor.run("", "")

        assert exc_info.value.command == ("tee", str(config.log_file))
        assert primary.signals == [signal.SIGKILL]
        assert isinstance(supervisor.state, NotStarted)

    @pytest.mark.parametrize(
        ("env", "args"),
        [("", "bad\x00arg"), ("FOO=a\x00b", "")],
        ids=["argument", "environment"],
    )
    async def test_nul_byte_is_spawn_failure(
        self, tmp_path: Path, env: str, args: str
    ) -> None:
        config = SupervisorConfig(
            working_dir=tmp_path,
            log_file=tmp_path / "node.log",
            command=(sys.executable, "-c", "pass"),
        )
        supervisor = ProcessSupervisor(config)

        with pytest.raises(ProcessSpawnError) as exc_info:
            await supervisor.run(env, args)

        assert isinstance(exc_info.value.cause, ValueError)
        assert isinstance(supervisor.state, NotStarted)


@pytest.mark.anyio
class TestStop:
    async def test_not_started_raises(self, config: SupervisorConfig) -> None:
        supervisor = ProcessSupervisor(config)

        with pytest.raises(NotRunningError):
            await supervisor.stop()

    async def test_exited_node_raises(self, config: SupervisorConfig) -> None:
        supervisor = ProcessSupervisor(config)
        primary = FakeProcess()
        primary.exit(1)
        _running(supervisor, primary)

        with pytest.raises(NotRunningError):
            await supervisor.stop()

        assert primary.signals == []

    async def test_graceful_stop_sends_only_sigterm(
        self, config: SupervisorConfig
    ) -> None:
        supervisor = ProcessSupervisor(config)
        primary = FakeProcess()
        _running(supervisor, primary)

        await supervisor.stop()

        assert primary.signals == [signal.SIGTERM]
        assert isinstance(supervisor.state, NotStarted)
        assert not supervisor.is_running()

    async def test_escalates_to_sigkill_after_timeout(
        self, config: SupervisorConfig
    ) -> None:
        supervisor = ProcessSupervisor(config)
        primary = FakeProcess(ignore_term=True)
        _running(supervisor, primary)

        await supervisor.stop()

        assert primary.signals == [signal.SIGTERM, signal.SIGKILL]
        assert isinstance(supervisor.state, NotStarted)

    async def test_process_gone_before_signal_succeeds(
        self, config: SupervisorConfig
    ) -> None:
        supervisor = ProcessSupervisor(config)
        _running(supervisor, FakeProcess(signal_error=ProcessLookupError()))

        await supervisor.stop()

        assert isinstance(supervisor.state, NotStarted)

    async def test_signal_failure_raises_and_keeps_state(
        self, config: SupervisorConfig
    ) -> None:
        supervisor = ProcessSupervisor(config)
        _running(supervisor, FakeProcess(signal_error=PermissionError(1, "EPERM")))

        with pytest.raises(ProcessSpawnError):
            await supervisor.stop()

        assert isinstance(supervisor.state, Running)
