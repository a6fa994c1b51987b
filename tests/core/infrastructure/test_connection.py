import pytest

from portfolio.core.infrastructure.connection import BackendConnection, ConnectionState
from portfolio.core.models.errors import BackendUnavailableError


class FlakyFactory:
    """Client factory that fails while `down` is set."""

    def __init__(self, *, down: bool = False) -> None:
        self.down = down
        self.calls = 0

    def __call__(self) -> object:
        self.calls += 1
        if self.down:
            raise ConnectionRefusedError("connection refused")
        return object()


class TestBackendConnection:
    def test_client_created_lazily(self) -> None:
        factory = FlakyFactory()
        connection = BackendConnection("s3", factory)

        assert connection.state is ConnectionState.UNINITIALIZED
        assert factory.calls == 0

        client = connection.client()

        assert connection.state is ConnectionState.READY
        assert connection.client() is client
        assert factory.calls == 1

    def test_factory_failure_degrades(self) -> None:
        connection = BackendConnection("redis", FlakyFactory(down=True))

        with pytest.raises(BackendUnavailableError) as exc:
            connection.client()

        assert connection.state is ConnectionState.DEGRADED
        assert exc.value.details["backend"] == "redis"
        assert "ConnectionRefusedError" in connection.last_error

    def test_degraded_connection_fails_fast(self) -> None:
        factory = FlakyFactory()
        connection = BackendConnection("dynamodb", factory)
        connection.client()

        connection.mark_degraded(TimeoutError("read timed out"))

        with pytest.raises(BackendUnavailableError):
            connection.client()
        assert factory.calls == 1

    def test_reconnect_restores_ready(self) -> None:
        factory = FlakyFactory()
        connection = BackendConnection("s3", factory)
        first = connection.client()
        connection.mark_degraded(TimeoutError("read timed out"))

        connection.reconnect()

        assert connection.state is ConnectionState.READY
        assert connection.last_error is None
        assert connection.client() is not first

    def test_reconnect_while_still_down(self) -> None:
        factory = FlakyFactory()
        connection = BackendConnection("s3", factory)
        connection.client()
        connection.mark_degraded(TimeoutError("read timed out"))
        factory.down = True

        with pytest.raises(BackendUnavailableError):
            connection.reconnect()

        assert connection.state is ConnectionState.DEGRADED

    def test_reconnect_runs_probe(self) -> None:
        probed: list[object] = []

        def probe(client: object) -> None:
            probed.append(client)
            raise ConnectionRefusedError("ping failed")

        connection = BackendConnection("redis", FlakyFactory(), probe=probe)
        connection.client()
        connection.mark_degraded(TimeoutError("read timed out"))

        with pytest.raises(BackendUnavailableError):
            connection.reconnect()

        assert len(probed) == 1
        assert connection.state is ConnectionState.DEGRADED

    def test_reconnect_is_noop_when_healthy(self) -> None:
        factory = FlakyFactory()
        connection = BackendConnection("s3", factory)

        connection.reconnect()

        assert connection.state is ConnectionState.UNINITIALIZED
        assert factory.calls == 0


class ManualClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


class TestDegradedRetry:
    def test_retries_after_cooldown(self) -> None:
        clock = ManualClock()
        factory = FlakyFactory()
        connection = BackendConnection("s3", factory, retry_after=30, clock=clock)
        first = connection.client()
        connection.mark_degraded(TimeoutError("read timed out"))

        clock.now = 29.0
        with pytest.raises(BackendUnavailableError):
            connection.client()
        assert factory.calls == 1

        clock.now = 30.0
        client = connection.client()

        assert client is not first
        assert connection.state is ConnectionState.READY
        assert connection.last_error is None
        assert factory.calls == 2

    def test_failed_retry_restarts_cooldown(self) -> None:
        clock = ManualClock()
        factory = FlakyFactory()
        connection = BackendConnection("redis", factory, retry_after=10, clock=clock)
        connection.client()
        connection.mark_degraded(TimeoutError("read timed out"))
        factory.down = True

        clock.now = 10.0
        with pytest.raises(BackendUnavailableError):
            connection.client()
        assert factory.calls == 2

        clock.now = 15.0
        with pytest.raises(BackendUnavailableError):
            connection.client()
        assert factory.calls == 2

        factory.down = False
        clock.now = 20.0
        connection.client()

        assert connection.state is ConnectionState.READY

    def test_retry_pings_new_client(self) -> None:
        clock = ManualClock()
        probed: list[object] = []
        connection = BackendConnection(
            "dynamodb", FlakyFactory(), probe=probed.append, retry_after=1, clock=clock
        )
        connection.client()
        connection.mark_degraded(TimeoutError("read timed out"))

        clock.now = 1.0
        connection.client()

        assert len(probed) == 1

    def test_initial_failure_retried_after_cooldown(self) -> None:
        clock = ManualClock()
        factory = FlakyFactory(down=True)
        connection = BackendConnection("s3", factory, retry_after=5, clock=clock)

        with pytest.raises(BackendUnavailableError):
            connection.client()

        factory.down = False
        clock.now = 5.0

        connection.client()
        assert connection.state is ConnectionState.READY
