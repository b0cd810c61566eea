"""Tests for the broadcast Feed."""

import asyncio
import threading

import pytest

from liftoff.progress.feed import Feed, FeedClosedError

# -- Callbacks -----------------------------------------------------------------


def test_broadcast_to_all_subscribers() -> None:
    feed: Feed[int] = Feed("numbers")
    first: list[int] = []
    second: list[int] = []
    feed.subscribe(first.append)
    feed.subscribe(second.append)

    feed.publish(1)
    feed.publish(2)

    assert first == [1, 2]
    assert second == [1, 2]
    assert feed.subscriber_count == 2


def test_late_subscriber_misses_earlier_values() -> None:
    feed: Feed[int] = Feed()
    feed.publish(1)
    late: list[int] = []
    feed.subscribe(late.append)

    feed.publish(2)

    assert late == [2]


def test_unsubscribe() -> None:
    feed: Feed[str] = Feed()
    seen: list[str] = []
    unsubscribe = feed.subscribe(seen.append)

    feed.publish("a")
    unsubscribe()
    unsubscribe()
    feed.publish("b")

    assert seen == ["a"]
    assert feed.subscriber_count == 0


def test_failing_listener_does_not_block_others(caplog: pytest.LogCaptureFixture) -> None:
    feed: Feed[int] = Feed("fragile")
    seen: list[int] = []

    def broken(value: int) -> None:
        raise RuntimeError("listener bug")

    feed.subscribe(broken)
    feed.subscribe(seen.append)

    feed.publish(7)

    assert seen == [7]
    assert "Listener failed on feed 'fragile'" in caplog.text


def test_publish_after_close_raises() -> None:
    feed: Feed[int] = Feed("done")
    feed.close()
    feed.close()
    assert feed.closed
    with pytest.raises(FeedClosedError, match="closed feed 'done'"):
        feed.publish(1)
    with pytest.raises(FeedClosedError):
        feed.subscribe(print)


# -- Streams -------------------------------------------------------------------


async def test_stream_receives_in_order_until_close() -> None:
    feed: Feed[int] = Feed()
    stream = feed.stream()

    for i in range(3):
        feed.publish(i)
    feed.close()

    assert [v async for v in stream] == [0, 1, 2]


async def test_stream_on_closed_feed_is_empty() -> None:
    feed: Feed[int] = Feed()
    feed.close()
    assert [v async for v in feed.stream()] == []


async def test_concurrent_consumer() -> None:
    feed: Feed[str] = Feed()
    stream = feed.stream()

    async def consume() -> list[str]:
        return [v async for v in stream]

    consumer = asyncio.create_task(consume())
    await asyncio.sleep(0)
    feed.publish("x")
    feed.publish("y")
    feed.close()

    assert await consumer == ["x", "y"]


# -- Cross-thread delivery -----------------------------------------------------


async def test_subscribe_with_loop_marshals_delivery() -> None:
    loop = asyncio.get_running_loop()
    feed: Feed[int] = Feed()
    seen: list[tuple[int, int]] = []
    done = asyncio.Event()

    def on_value(value: int) -> None:
        seen.append((value, threading.get_ident()))
        if value == 2:
            done.set()

    feed.subscribe(on_value, loop=loop)

    def producer() -> None:
        feed.publish(1)
        feed.publish(2)

    thread = threading.Thread(target=producer)
    thread.start()
    thread.join()
    await asyncio.wait_for(done.wait(), timeout=1)

    assert [v for v, _ in seen] == [1, 2]
    assert {ident for _, ident in seen} == {threading.get_ident()}
