"""Unit tests for the shared message log and input buffer."""
import threading

import pytest
from hypothesis import given
from hypothesis import strategies as st

from state import Category, ChatMessage, InputBuffer, MessageLog


class TestMessageLog:
    """Tests for MessageLog."""

    def test_default_capacity(self):
        assert MessageLog().capacity == 1000

    def test_append_keeps_arrival_order(self):
        log = MessageLog()
        log.append("uno", Category.INFO)
        log.append("dos", Category.RECEIVED)

        assert log.snapshot() == [
            ChatMessage("uno", Category.INFO),
            ChatMessage("dos", Category.RECEIVED),
        ]

    @pytest.mark.parametrize("text", ["", "   ", "\n\t"])
    def test_blank_messages_are_rejected(self, text):
        log = MessageLog()
        assert log.append(text) is False
        assert len(log) == 0

    def test_category_accepts_plain_value(self):
        log = MessageLog()
        log.append("x", "error")
        assert log.snapshot()[0].category is Category.ERROR

    def test_snapshot_is_a_copy(self):
        log = MessageLog()
        log.append("uno")
        snapshot = log.snapshot()
        log.append("dos")
        assert len(snapshot) == 1

    def test_evicts_oldest_beyond_default_capacity(self):
        log = MessageLog()
        for i in range(1005):
            log.append(f"m{i}")

        texts = [m.text for m in log.snapshot()]
        assert len(texts) == 1000
        assert texts[0] == "m5"
        assert texts[-1] == "m1004"

    @given(st.integers(min_value=1, max_value=20), st.integers(min_value=0, max_value=60))
    def test_fifo_eviction(self, capacity, count):
        """Property test: the log keeps exactly the newest `capacity` entries in order."""
        log = MessageLog(capacity=capacity)
        for i in range(count):
            log.append(f"m{i}")

        expected = [f"m{i}" for i in range(max(0, count - capacity), count)]
        assert [m.text for m in log.snapshot()] == expected

    def test_invalid_capacity(self):
        with pytest.raises(ValueError):
            MessageLog(capacity=0)

    def test_concurrent_appends_are_not_lost(self):
        log = MessageLog(capacity=10_000)

        def writer(prefix):
            for i in range(500):
                log.append(f"{prefix}{i}")

        threads = [threading.Thread(target=writer, args=(p,)) for p in "abcd"]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        texts = [m.text for m in log.snapshot()]
        assert len(texts) == 2000
        # Each writer's own messages stay in its order
        for prefix in "abcd":
            own = [t for t in texts if t.startswith(prefix)]
            assert own == [f"{prefix}{i}" for i in range(500)]


class TestInputBuffer:
    """Tests for InputBuffer."""

    def test_builds_text(self):
        buf = InputBuffer()
        for char in "hola":
            buf.append_char(char)
        assert buf.text() == "hola"

    def test_backspace(self):
        buf = InputBuffer()
        buf.append_char("a")
        buf.append_char("b")

        assert buf.backspace() is True
        assert buf.text() == "a"

    def test_backspace_on_empty_is_noop(self):
        buf = InputBuffer()
        assert buf.backspace() is False
        assert buf.text() == ""

    def test_take_and_clear_twice(self):
        buf = InputBuffer()
        for char in "hi":
            buf.append_char(char)

        assert buf.take_and_clear() == "hi"
        assert buf.take_and_clear() == ""

    @given(st.text(max_size=50))
    def test_take_returns_everything_typed(self, text):
        """Property test: submission returns exactly the typed characters once."""
        buf = InputBuffer()
        for char in text:
            buf.append_char(char)

        assert buf.take_and_clear() == text
        assert buf.take_and_clear() == ""
