"""Unit tests for outbound routing."""

import json

import pytest

from chatbridge.audit.logger import AuditEventType, AuditLogger
from chatbridge.channels.errors import ChannelConnectionError, NoChannelError
from chatbridge.channels.protocol import Channel
from chatbridge.channels.router import ChannelRouter, find_channel, route_outbound


class MockChannel(Channel):
    """Mock channel owning every JID with a given prefix."""

    def __init__(self, name: str, prefix: str, connected: bool = False, fail_connect: bool = False):
        self._name = name
        self._prefix = prefix
        self._connected = connected
        self._fail_connect = fail_connect
        self.sent: list[tuple[str, str]] = []
        self.disconnect_calls = 0

    @property
    def name(self) -> str:
        return self._name

    async def connect(self) -> None:
        if self._fail_connect:
            raise ChannelConnectionError("handshake failed", self._name)
        self._connected = True

    async def send_message(self, jid: str, text: str) -> None:
        self.sent.append((jid, text))

    def is_connected(self) -> bool:
        return self._connected

    def owns_jid(self, jid: str) -> bool:
        return jid.startswith(self._prefix)

    async def disconnect(self) -> None:
        self.disconnect_calls += 1
        self._connected = False


class TestRouteOutbound:
    """Tests for route_outbound and find_channel."""

    @pytest.mark.asyncio
    async def test_skips_disconnected_owner(self):
        """A connected owner later in the list wins over a disconnected one."""
        a = MockChannel("a", "x:", connected=False)
        b = MockChannel("b", "x:", connected=True)

        await route_outbound([a, b], "x:1", "hi")

        assert a.sent == []
        assert b.sent == [("x:1", "hi")]

    @pytest.mark.asyncio
    async def test_first_registered_wins(self):
        a = MockChannel("a", "x:", connected=True)
        b = MockChannel("b", "x:", connected=True)

        for _ in range(3):
            await route_outbound([a, b], "x:1", "hi")

        assert len(a.sent) == 3
        assert b.sent == []

    def test_no_owner_raises_before_awaiting(self):
        """The error is raised by the call itself, not by awaiting it."""
        with pytest.raises(NoChannelError, match="No channel for JID: y:1") as exc_info:
            route_outbound([MockChannel("a", "x:", connected=True)], "y:1", "hi")
        assert exc_info.value.jid == "y:1"

    def test_only_disconnected_owners_raises(self):
        channels = [MockChannel("a", "x:"), MockChannel("b", "x:")]
        with pytest.raises(NoChannelError):
            route_outbound(channels, "x:1", "hi")

    @pytest.mark.asyncio
    async def test_preserves_send_order(self):
        a = MockChannel("a", "x:", connected=True)
        for text in ["one", "two", "three"]:
            await route_outbound([a], "x:1", text)
        assert [t for _, t in a.sent] == ["one", "two", "three"]

    def test_find_channel_ignores_connectivity(self):
        a = MockChannel("a", "x:", connected=False)
        assert find_channel([a], "x:1") is a

    def test_find_channel_matches_owns_jid(self):
        a = MockChannel("a", "x:", connected=True)
        b = MockChannel("b", "y:", connected=False)
        assert find_channel([a, b], "y:9") is b

    def test_find_channel_absent(self):
        assert find_channel([MockChannel("a", "x:")], "z:1") is None
        assert find_channel([], "z:1") is None


@pytest.fixture
def audit_logger(temp_dir):
    return AuditLogger(log_path=temp_dir / "audit.jsonl", buffer_size=1)


def _events(audit_logger: AuditLogger) -> list[str]:
    if not audit_logger.log_path.exists():
        return []
    with audit_logger.log_path.open() as f:
        return [json.loads(line)["event_type"] for line in f]


class TestChannelRouter:
    """Tests for ChannelRouter."""

    def test_register_keeps_order(self):
        router = ChannelRouter()
        a, b = MockChannel("a", "x:"), MockChannel("b", "x:")
        router.register(a)
        router.register(b)
        assert router.channels == (a, b)

    def test_register_same_instance_twice_raises(self):
        router = ChannelRouter()
        a = MockChannel("a", "x:")
        router.register(a)
        with pytest.raises(ValueError, match="already registered"):
            router.register(a)

    def test_same_prefix_instances_allowed(self):
        router = ChannelRouter()
        router.register(MockChannel("a", "x:"))
        router.register(MockChannel("a", "x:"))
        assert len(router.channels) == 2

    @pytest.mark.asyncio
    async def test_connect_and_status(self, audit_logger):
        router = ChannelRouter(audit_logger=audit_logger)
        router.register(MockChannel("a", "x:"))
        router.register(MockChannel("b", "y:"))

        assert router.status() == {"a": False, "b": False}
        await router.connect_all()
        assert router.status() == {"a": True, "b": True}
        assert _events(audit_logger) == ["channel_connected", "channel_connected"]

    @pytest.mark.asyncio
    async def test_connect_failure_propagates(self, audit_logger):
        router = ChannelRouter(audit_logger=audit_logger)
        bad = MockChannel("bad", "x:", fail_connect=True)
        router.register(bad)

        with pytest.raises(ChannelConnectionError):
            await router.connect_all()

        assert bad.is_connected() is False
        assert _events(audit_logger) == [AuditEventType.CHANNEL_ERROR.value]

    @pytest.mark.asyncio
    async def test_send_sanitizes_before_routing(self, audit_logger):
        router = ChannelRouter(audit_logger=audit_logger)
        a = MockChannel("a", "x:", connected=True)
        router.register(a)

        sent = await router.send("x:1", "Hi <internal>plan</internal>there")

        assert sent is True
        assert a.sent == [("x:1", "Hi there")]
        assert _events(audit_logger) == ["message_sent"]

    @pytest.mark.asyncio
    async def test_send_nothing_left(self, audit_logger):
        router = ChannelRouter(audit_logger=audit_logger)
        a = MockChannel("a", "x:", connected=True)
        router.register(a)

        sent = await router.send("x:1", "<internal>only thoughts")

        assert sent is False
        assert a.sent == []
        assert _events(audit_logger) == ["message_dropped"]

    @pytest.mark.asyncio
    async def test_send_without_owner_raises(self, audit_logger):
        router = ChannelRouter(audit_logger=audit_logger)
        router.register(MockChannel("a", "x:", connected=True))

        with pytest.raises(NoChannelError):
            await router.send("y:1", "hello")
        assert _events(audit_logger) == ["routing_failed"]

    @pytest.mark.asyncio
    async def test_send_after_disconnect_fails(self):
        router = ChannelRouter()
        a = MockChannel("a", "x:", connected=True)
        router.register(a)

        await router.disconnect_all()

        with pytest.raises(NoChannelError):
            await router.send("x:1", "hello")
        assert router.find("x:1") is a

    @pytest.mark.asyncio
    async def test_disconnect_all_is_idempotent(self):
        router = ChannelRouter()
        a = MockChannel("a", "x:", connected=True)
        router.register(a)

        await router.disconnect_all()
        await router.disconnect_all()

        assert a.disconnect_calls == 2
        assert a.is_connected() is False

    @pytest.mark.asyncio
    async def test_disconnect_continues_after_error(self):
        class Broken(MockChannel):
            async def disconnect(self) -> None:
                raise RuntimeError("boom")

        router = ChannelRouter()
        broken = Broken("broken", "x:", connected=True)
        ok = MockChannel("ok", "y:", connected=True)
        router.register(broken)
        router.register(ok)

        await router.disconnect_all()

        assert ok.is_connected() is False
