import pytest

from termchat.core.history import HistoryBuffer
from termchat.models import ChatEvent, SystemEvent


def chat(n: int) -> ChatEvent:
    return ChatEvent(timestamp="00:00:00", username="neo", color="", message=f"m{n}", id="s1")


def test_keeps_last_n_in_order():
    buf = HistoryBuffer(100)
    for n in range(250):
        buf.append(chat(n))
    events = buf.snapshot()
    assert len(events) == 100
    assert [e.message for e in events] == [f"m{n}" for n in range(150, 250)]


def test_under_capacity_keeps_everything():
    buf = HistoryBuffer(5)
    buf.append(SystemEvent(timestamp="00:00:00", message="a joined the terminal", onlineCount=1))
    buf.append(chat(0))
    assert len(buf) == 2
    assert [e.type for e in buf.snapshot()] == ["system", "message"]


def test_snapshot_is_a_copy():
    buf = HistoryBuffer(3)
    buf.append(chat(0))
    snap = buf.snapshot()
    buf.append(chat(1))
    assert len(snap) == 1


def test_capacity_must_be_positive():
    with pytest.raises(ValueError):
        HistoryBuffer(0)
    assert HistoryBuffer(7).capacity == 7
