from typing import List

import pytest

from huffbundle.errors import TransactionTimeout
from huffbundle.handshake import Channel, Handshake, HandshakeState


class TestHandshake:
    def test_rising_edge_starts_one_transaction(self) -> None:
        calls: List[int] = []
        hs = Handshake(lambda x: calls.append(x) or x * 2)
        assert hs.state is HandshakeState.IDLE
        assert hs.drive(1, 21) is True
        assert hs.state is HandshakeState.REQUESTED
        assert hs.poll() == 1
        assert hs.result == 42
        assert hs.state is HandshakeState.ACKNOWLEDGED

        # holding the request high is not a new edge
        assert hs.drive(1, 99) is False
        assert hs.poll() == 1
        assert calls == [21]
        assert hs.transactions == 1

    def test_dropping_the_request_clears_the_ack(self) -> None:
        hs = Handshake(lambda: None)
        hs.drive(1)
        hs.poll()
        hs.drive(0)
        assert hs.ack == 0
        assert hs.state is HandshakeState.IDLE
        assert hs.drive(1) is True
        hs.poll()
        assert hs.transactions == 2

    def test_latency_delays_the_ack(self) -> None:
        hs = Handshake(lambda: "done", latency=3)
        hs.drive(1)
        assert [hs.poll() for _ in range(4)] == [0, 0, 0, 1]
        assert hs.result == "done"

    def test_no_request_means_no_ack(self) -> None:
        hs = Handshake(lambda: None)
        assert hs.poll() == 0
        assert hs.transactions == 0


class TestChannel:
    def test_transact_returns_the_result_and_drops_the_request(self) -> None:
        ch = Channel(lambda a, b: a + b, retries=1, name="adder")
        assert ch.transact(2, 3) == 5
        assert ch.transact(4, 5) == 9
        assert ch.transactions == 2
        assert ch.state is HandshakeState.IDLE
        assert ch.line.request == 0

    def test_latency_within_budget(self) -> None:
        ch = Channel(lambda: "ok", retries=3, latency=2)
        assert ch.transact() == "ok"

    def test_timeout_when_budget_is_too_small(self) -> None:
        calls: List[int] = []
        ch = Channel(lambda: calls.append(1), retries=2, latency=2, name="slow")
        with pytest.raises(TransactionTimeout) as info:
            ch.transact()
        assert info.value.channel == "slow"
        assert info.value.retries == 2
        assert calls == []
        # the request was dropped, so the next call is a fresh edge
        assert ch.state is HandshakeState.IDLE

    def test_device_error_propagates_and_releases_the_line(self) -> None:
        def boom() -> None:
            raise ValueError("device fault")

        ch = Channel(boom, retries=1)
        with pytest.raises(ValueError):
            ch.transact()
        assert ch.line.request == 0
        assert ch.state is HandshakeState.IDLE

    def test_poll_interval_sleeps_between_polls(self, monkeypatch) -> None:
        sleeps: List[float] = []
        monkeypatch.setattr("huffbundle.handshake.time.sleep", sleeps.append)
        ch = Channel(lambda: 1, retries=5, latency=2, poll_interval=0.01)
        ch.transact()
        assert sleeps == [0.01, 0.01]
