from rotatelab.core.history import HistoryItem, HistoryManager


def test_push():
    history = HistoryManager()
    first = HistoryItem(b"one")
    history.push(first)
    assert history.items == [first]
    second = HistoryItem(b"two", rotation_degrees=90)
    history.push(second)
    assert history.items == [first, second]
    assert len(history) == 2


def test_undo_pops_most_recent():
    history = HistoryManager()
    first, second = HistoryItem(b"one"), HistoryItem(b"two")
    history.push(first)
    history.push(second)

    assert history.undo() is second
    assert history.items == [first]
    assert history.undo() is first
    assert history.is_empty()


def test_undo_empty():
    history = HistoryManager()
    assert history.undo() is None  # Should not raise error
    assert history.items == []


def test_peek_does_not_pop():
    history = HistoryManager()
    assert history.peek() is None
    item = HistoryItem(b"one")
    history.push(item)
    assert history.peek() is item
    assert len(history) == 1


def test_clear():
    history = HistoryManager()
    history.push(HistoryItem(b"one"))
    history.push(HistoryItem(b"two"))
    history.clear()
    assert history.is_empty()


def test_item_metadata():
    item = HistoryItem(b"data", rotation_degrees=-45, timestamp=123.0)
    assert item.image_data == b"data"
    assert item.rotation_degrees == -45
    assert item.timestamp == 123.0
    assert HistoryItem(b"x").timestamp > 0


def test_reinsert_restores_popped_item():
    history = HistoryManager()
    first, second, third = HistoryItem(b"one"), HistoryItem(b"two"), HistoryItem(b"three")
    history.push(first)
    history.push(second)
    popped = history.undo()
    history.push(third)
    history.reinsert(1, popped)
    assert history.items == [first, second, third]
    history.reinsert(10, HistoryItem(b"four"))
    assert len(history) == 4
