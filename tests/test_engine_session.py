import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
sys.path.append(str(ROOT / "src"))

import asyncio

import pytest

from fakes import FakeEngineProcess, Spawner, ready_session
from rookmove.engine.errors import EngineNotReady, InitializationError
from rookmove.engine.session import EngineSession, SessionState


def test_initialize_runs_handshake():
    async def scenario():
        process = FakeEngineProcess()
        session = EngineSession(Spawner(process))
        await session.initialize()
        return session, process

    session, process = asyncio.run(scenario())
    assert session.state is SessionState.READY
    assert process.sent == ["uci", "isready"]


def test_initialize_when_ready_is_noop():
    async def scenario():
        process = FakeEngineProcess()
        spawner = Spawner(process)
        session = EngineSession(spawner)
        await session.initialize()
        await session.initialize()
        return spawner, process

    spawner, process = asyncio.run(scenario())
    assert spawner.calls == 1
    assert process.sent == ["uci", "isready"]


def test_concurrent_initialize_spawns_once():
    async def scenario():
        spawner = Spawner(FakeEngineProcess())
        session = EngineSession(spawner)
        await asyncio.gather(session.initialize(), session.initialize(), session.initialize())
        return session, spawner

    session, spawner = asyncio.run(scenario())
    assert spawner.calls == 1
    assert session.is_ready


def test_readyok_before_uciok_is_ignored():
    async def scenario():
        process = FakeEngineProcess(handshake=False)
        session = EngineSession(Spawner(process), init_timeout_ms=1_000)
        task = asyncio.ensure_future(session.initialize())
        await asyncio.sleep(0)
        process.push("readyok")
        await asyncio.sleep(0.01)
        state_after_early_readyok = session.state
        process.push("uciok")
        await asyncio.sleep(0.01)
        process.push("readyok")
        await task
        return state_after_early_readyok, session, process

    early_state, session, process = asyncio.run(scenario())
    assert early_state is SessionState.HANDSHAKE_UCI_SENT
    assert session.is_ready
    assert process.sent == ["uci", "isready"]


def test_initialize_timeout_fails_and_allows_retry():
    async def scenario():
        silent = FakeEngineProcess(handshake=False)
        working = FakeEngineProcess()
        spawner = Spawner(silent, working)
        session = EngineSession(spawner, init_timeout_ms=50)
        with pytest.raises(InitializationError):
            await session.initialize()
        failed_state = session.state
        await session.initialize()
        return failed_state, session, silent, spawner

    failed_state, session, silent, spawner = asyncio.run(scenario())
    assert failed_state is SessionState.FAILED
    assert silent.killed
    assert spawner.calls == 2
    assert session.is_ready


def test_spawn_error_raises_initialization_error():
    async def scenario():
        session = EngineSession(Spawner(FileNotFoundError("no stockfish")))
        with pytest.raises(InitializationError):
            await session.initialize()
        return session

    session = asyncio.run(scenario())
    assert session.state is SessionState.FAILED


def test_process_exit_during_handshake_fails_init():
    async def scenario():
        process = FakeEngineProcess(replies={"uci": [None]}, handshake=False)
        session = EngineSession(Spawner(process), init_timeout_ms=5_000)
        with pytest.raises(InitializationError):
            await session.initialize()
        return session

    session = asyncio.run(scenario())
    assert session.state is SessionState.FAILED


def test_send_before_ready_raises():
    session = EngineSession(Spawner())
    with pytest.raises(EngineNotReady):
        session.send("go")


def test_fan_out_skips_handshake_tokens_and_keeps_order():
    async def scenario():
        session, _ = await ready_session()
        received = []
        session.subscribe(lambda line: received.append(("a", line)))
        session.subscribe(lambda line: received.append(("b", line)))
        session.feed_line("uciok")
        session.feed_line("readyok")
        session.feed_line("info depth 1 score cp 3")
        return received

    received = asyncio.run(scenario())
    assert received == [("a", "info depth 1 score cp 3"), ("b", "info depth 1 score cp 3")]


def test_handler_removed_mid_pass_is_not_invoked():
    async def scenario():
        session, _ = await ready_session()
        received = []

        def second(line):
            received.append(("second", line))

        def first(line):
            received.append(("first", line))
            session.unsubscribe(first)
            session.unsubscribe(second)

        session.subscribe(first)
        session.subscribe(second)
        session.feed_line("bestmove e2e4")
        session.feed_line("bestmove d2d4")
        return received

    assert asyncio.run(scenario()) == [("first", "bestmove e2e4")]


def test_failing_handler_does_not_stop_delivery():
    async def scenario():
        session, _ = await ready_session()
        received = []

        def broken(_line):
            raise RuntimeError("boom")

        session.subscribe(broken)
        session.subscribe(received.append)
        session.feed_line("info string hello")
        return received

    assert asyncio.run(scenario()) == ["info string hello"]


def test_terminate_resets_session():
    async def scenario():
        session, process = await ready_session()
        received = []
        session.subscribe(received.append)
        session.terminate()
        return session, process, received

    session, process, received = asyncio.run(scenario())
    assert session.state is SessionState.NOT_STARTED
    assert process.killed
    assert not session.is_subscribed(received.append)
    with pytest.raises(EngineNotReady):
        session.send("go")


def test_unexpected_spawn_error_fails_init_and_allows_retry():
    async def scenario():
        spawner = Spawner(RuntimeError("no subprocess support"), FakeEngineProcess())
        session = EngineSession(spawner)
        with pytest.raises(InitializationError) as info:
            await session.initialize()
        failed_state = session.state
        await asyncio.wait_for(session.initialize(), 1.0)
        return failed_state, session, spawner, info.value

    failed_state, session, spawner, error = asyncio.run(scenario())
    assert failed_state is SessionState.FAILED
    assert "no subprocess support" in error.message
    assert session.is_ready
    assert spawner.calls == 2


def test_cancelled_spawn_allows_retry():
    process = FakeEngineProcess()
    calls = []

    async def slow_then_fast_spawner():
        calls.append(len(calls))
        if len(calls) == 1:
            await asyncio.sleep(10)
        return process

    async def scenario():
        session = EngineSession(slow_then_fast_spawner)
        with pytest.raises(asyncio.TimeoutError):
            await asyncio.wait_for(session.initialize(), 0.05)
        cancelled_state = session.state
        await asyncio.wait_for(session.initialize(), 1.0)
        return cancelled_state, session

    cancelled_state, session = asyncio.run(scenario())
    assert cancelled_state is SessionState.FAILED
    assert session.is_ready
    assert len(calls) == 2


def test_terminate_during_initialize_fails_init():
    async def scenario():
        process = FakeEngineProcess(handshake=False)
        session = EngineSession(Spawner(process), init_timeout_ms=5_000)
        task = asyncio.ensure_future(session.initialize())
        await asyncio.sleep(0.01)
        sent_before = list(process.sent)
        session.terminate()
        with pytest.raises(InitializationError):
            await task
        return sent_before, session, process

    sent_before, session, process = asyncio.run(scenario())
    assert sent_before == ["uci"]
    assert session.state is SessionState.NOT_STARTED
    assert process.killed
