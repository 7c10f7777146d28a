# tests/test_task_store.py

from __future__ import annotations

import random

import pytest

from ivylee.errors import NotFoundError, ValidationError
from ivylee.tasks.filters import TagFilter
from ivylee.tasks.task_models import Task, TaskStatus
from ivylee.tasks.task_refs import ById, ByIndex
from ivylee.tasks.task_store import TaskStore


def _descs(tasks) -> list[str]:
    return [t.description for t in tasks]


def _store_with(*descriptions: str) -> TaskStore:
    store = TaskStore()
    for d in descriptions:
        store.add(d)
    return store


def test_add_keeps_call_order_and_unique_ids(store: TaskStore) -> None:
    ids = [store.add(f"task {i}") for i in range(200)]
    assert _descs(store.open) == [f"task {i}" for i in range(200)]
    assert len(set(ids)) == len(ids)
    assert all(len(i) == 4 and not i.isdigit() for i in ids)


def test_add_rejects_empty_description(store: TaskStore) -> None:
    with pytest.raises(ValidationError):
        store.add("   ")
    assert len(store) == 0


def test_add_with_note_and_tags(store: TaskStore) -> None:
    task_id = store.add("Write report", note=" for Q3 ", tags=["work", "work", "writing"])
    task = store.get(task_id)
    assert task.note == "for Q3"
    assert task.tags == ["work", "writing"]
    assert task.finished is False
    assert store.status_of(task) is TaskStatus.TODO


def test_priority_view_scenario() -> None:
    store = _store_with("Write report", "Call client", "Review PR")
    assert _descs(store.priority_view()) == ["Write report", "Call client", "Review PR"]


def test_priority_view_caps_at_six_without_consuming() -> None:
    store = TaskStore()
    for i in range(10):
        store.add(f"t{i}", tags=["even"] if i % 2 == 0 else ["odd"])

    assert _descs(store.priority_view()) == [f"t{i}" for i in range(6)]
    assert store.backlog_count() == 4

    evens = TagFilter.parse(["+even"])
    assert _descs(store.priority_view(evens)) == ["t0", "t2", "t4", "t6", "t8"]
    assert store.backlog_count(evens) == 0

    # Same answer when asked again; open order untouched.
    assert _descs(store.priority_view()) == [f"t{i}" for i in range(6)]
    assert len(store.open) == 10


def test_numbered_open_reports_real_positions() -> None:
    store = TaskStore()
    store.add("a", tags=["x"])
    store.add("b")
    store.add("c", tags=["x"])
    numbered = store.numbered_open(TagFilter.parse(["+x"]))
    assert [(n, t.description) for n, t in numbered] == [(1, "a"), (3, "c")]


def test_bump_scenario() -> None:
    store = _store_with("A", "B", "C")
    bumped = store.bump(ByIndex(1))
    assert bumped.description == "A"
    assert _descs(store.open) == ["B", "C", "A"]


def test_bump_last_is_idempotent() -> None:
    store = _store_with("A", "B", "C")
    store.bump(ByIndex(3))
    assert _descs(store.open) == ["A", "B", "C"]


def test_bump_by_id_and_missing() -> None:
    store = _store_with("A", "B", "C")
    b = store.open[1]
    store.bump(ById(b.id))
    assert _descs(store.open) == ["A", "C", "B"]
    with pytest.raises(NotFoundError):
        store.bump(ByIndex(4))
    with pytest.raises(NotFoundError):
        store.bump(ById("nope"))


def test_bump_property_random() -> None:
    rng = random.Random(7)
    for _ in range(50):
        n = rng.randint(1, 12)
        store = _store_with(*[f"t{i}" for i in range(n)])
        before = _descs(store.open)
        k = rng.randint(1, n)
        store.bump(ByIndex(k))
        after = _descs(store.open)
        assert after[-1] == before[k - 1]
        assert after[:-1] == before[: k - 1] + before[k:]


def test_bump_many_keeps_relative_order() -> None:
    store = _store_with("A", "B", "C", "D")
    moved = store.bump_many([ByIndex(3), ByIndex(1), ByIndex(1)])
    assert _descs(moved) == ["A", "C"]
    assert _descs(store.open) == ["B", "D", "A", "C"]


def test_bump_many_resolves_everything_first() -> None:
    store = _store_with("A", "B")
    with pytest.raises(NotFoundError):
        store.bump_many([ByIndex(1), ByIndex(9)])
    assert _descs(store.open) == ["A", "B"]


@pytest.mark.parametrize(
    ("src", "dst", "expected"),
    [
        (1, 3, ["B", "A", "C", "D"]),
        (3, 1, ["C", "A", "B", "D"]),
        (4, 2, ["A", "D", "B", "C"]),
        (1, 2, ["A", "B", "C", "D"]),
        (2, 1, ["B", "A", "C", "D"]),
        (1, 4, ["B", "C", "A", "D"]),
    ],
)
def test_move_places_task_in_front_of_target(src: int, dst: int, expected: list[str]) -> None:
    store = _store_with("A", "B", "C", "D")
    store.move(ByIndex(src), ByIndex(dst))
    assert _descs(store.open) == expected


def test_move_onto_itself_is_a_noop() -> None:
    store = _store_with("A", "B", "C")
    task = store.move(ByIndex(2), ByIndex(2))
    assert task.description == "B"
    assert _descs(store.open) == ["A", "B", "C"]


def test_move_by_id_and_invalid_refs() -> None:
    store = _store_with("A", "B", "C")
    a, _, c = store.open
    store.move(ById(c.id), ById(a.id))
    assert _descs(store.open) == ["C", "A", "B"]

    with pytest.raises(NotFoundError):
        store.move(ByIndex(1), ByIndex(7))
    with pytest.raises(NotFoundError):
        store.move(ById("nope"), ByIndex(1))
    assert _descs(store.open) == ["C", "A", "B"]


def test_move_property_random() -> None:
    rng = random.Random(11)
    for _ in range(100):
        n = rng.randint(2, 10)
        store = _store_with(*[f"t{i}" for i in range(n)])
        before = [t.id for t in store.open]
        src, dst = rng.randint(1, n), rng.randint(1, n)
        moved_id = before[src - 1]
        target_id = before[dst - 1]

        store.move(ByIndex(src), ByIndex(dst))
        after = [t.id for t in store.open]

        assert sorted(after) == sorted(before)
        if src != dst:
            assert after[after.index(target_id) - 1] == moved_id
        else:
            assert after == before


def test_finish_then_sweep_scenario() -> None:
    store = _store_with("A", "B", "C")
    a = store.finish(ByIndex(1))
    assert a.finished and a.finished_at is not None
    assert store.status_of(a) is TaskStatus.MARKED
    # finish does not move anything
    assert _descs(store.open) == ["A", "B", "C"]

    moved = store.sweep()
    assert _descs(moved) == ["A"]
    assert _descs(store.open) == ["B", "C"]
    assert _descs(store.done) == ["A"]
    assert store.status_of(a) is TaskStatus.DONE


def test_sweep_keeps_done_order_stable_across_sweeps() -> None:
    store = _store_with("A", "B", "C", "D", "E")
    store.finish(ByIndex(4))
    store.finish(ByIndex(2))
    store.sweep()
    assert _descs(store.done) == ["B", "D"]

    store.finish(ByIndex(1))
    store.finish(ByIndex(3))
    store.sweep()
    assert _descs(store.done) == ["B", "D", "A", "E"]
    assert _descs(store.open) == ["C"]


def test_sweep_with_nothing_finished_is_a_noop() -> None:
    store = _store_with("A", "B")
    assert store.sweep() == []
    assert _descs(store.open) == ["A", "B"]
    assert store.done == ()


def test_finish_requires_open_task() -> None:
    store = _store_with("A", "B")
    a = store.open[0]
    store.finish(ById(a.id))
    store.sweep()
    with pytest.raises(NotFoundError):
        store.finish(ById(a.id))
    with pytest.raises(NotFoundError):
        store.finish(ByIndex(2))


def test_finish_next_and_finish_many() -> None:
    store = _store_with("A", "B", "C")
    assert store.finish_next().description == "A"
    assert store.finish_next().description == "B"

    with pytest.raises(NotFoundError):
        store.finish_many([ByIndex(3), ByIndex(5)])
    assert store.open[2].finished is False

    store.finish_many([ByIndex(3)])
    with pytest.raises(NotFoundError):
        store.finish_next()


def test_edit_partial_update_and_tag_precedence() -> None:
    store = TaskStore()
    task_id = store.add("Draft", note="n", tags=["a", "b"])

    store.edit(task_id, add_tags=["c", "b", "d"], remove_tags=["a", "d"])
    task = store.get(task_id)
    assert task.tags == ["b", "c"]
    assert task.description == "Draft"
    assert task.note == "n"

    store.edit(ById(task_id), description="Final", note="")
    assert task.description == "Final"
    assert task.note == ""


def test_edit_works_on_done_tasks_and_validates() -> None:
    store = _store_with("A")
    a = store.open[0]
    store.finish(ByIndex(1))
    store.sweep()

    store.edit(a.id, description="A (done)", add_tags=["archived"])
    assert store.done[0].description == "A (done)"
    assert store.done[0].tags == ["archived"]

    with pytest.raises(ValidationError):
        store.edit(a.id, description="  ")
    assert store.done[0].description == "A (done)"

    with pytest.raises(NotFoundError):
        store.edit("nope", note="x")


def test_remove_from_either_collection() -> None:
    store = _store_with("A", "B", "C")
    a, b, _ = store.open
    store.finish(ByIndex(1))
    store.sweep()

    total = len(store)
    removed = store.remove(a.id)
    assert removed is a
    assert len(store) == total - 1
    with pytest.raises(NotFoundError):
        store.get(a.id)

    store.remove(ById(b.id))
    assert _descs(store.open) == ["C"]
    with pytest.raises(NotFoundError):
        store.remove(b.id)


def test_list_view_orders_open_then_done() -> None:
    store = TaskStore()
    store.add("A", tags=["x"])
    store.add("B")
    store.add("C", tags=["x"])
    store.finish(ByIndex(1))
    store.sweep()

    assert _descs(store.list_view()) == ["B", "C", "A"]
    assert _descs(store.list_view(open_only=True)) == ["B", "C"]
    assert _descs(store.list_view(done_only=True)) == ["A"]
    assert _descs(store.list_view(open_only=True, done_only=True)) == ["B", "C", "A"]
    assert _descs(store.list_view(TagFilter.parse(["+x"]))) == ["C", "A"]


def test_constructor_enforces_invariants() -> None:
    dup = [Task(id="aaaa", description="x"), Task(id="aaaa", description="y")]
    with pytest.raises(ValidationError):
        TaskStore(dup)
    with pytest.raises(ValidationError):
        TaskStore([], [Task(id="bbbb", description="not finished")])
