from uuid import uuid4

from taskboard.client.store import LocalTaskStore
from taskboard.models.task import TaskStatus

from .fakes import make_task


def _ids(tasks):
    return [t.id for t in tasks]


def test_load_keeps_given_order_and_column_views_preserve_it():
    uid = uuid4()
    a = make_task(uid, "A", minutes=2)
    b = make_task(uid, "B", minutes=1)
    store = LocalTaskStore(uid)

    store.load([a, b])

    assert _ids(store.tasks) == [a.id, b.id]
    assert _ids(store.column(TaskStatus.PENDING)) == [a.id, b.id]


def test_columns_always_have_all_three_statuses():
    uid = uuid4()
    store = LocalTaskStore(uid)
    store.load([make_task(uid, "x", TaskStatus.COMPLETED)])

    cols = store.columns()

    assert set(cols) == set(TaskStatus)
    assert cols[TaskStatus.PENDING] == []
    assert len(cols[TaskStatus.COMPLETED]) == 1
    assert store.open_count() == 0


def test_insert_same_id_twice_replaces_instead_of_duplicating():
    uid = uuid4()
    store = LocalTaskStore(uid)
    first = make_task(uid, "first")
    echo = first.model_copy(update={"title": "echo"})

    store.apply_insert(first)
    store.apply_insert(echo)

    assert len(store) == 1
    assert store.get(first.id).title == "echo"


def test_insert_prepends_new_tasks():
    uid = uuid4()
    old = make_task(uid, "old")
    store = LocalTaskStore(uid)
    store.load([old])

    new = make_task(uid, "new", minutes=5)
    store.apply_insert(new)

    assert _ids(store.tasks) == [new.id, old.id]


def test_update_unknown_id_is_a_noop():
    uid = uuid4()
    store = LocalTaskStore(uid)
    known = make_task(uid, "known")
    store.load([known])

    assert store.apply_update(make_task(uid, "ghost")) is False
    assert _ids(store.tasks) == [known.id]


def test_update_replaces_matching_task_in_place():
    uid = uuid4()
    a, b = make_task(uid, "a", minutes=2), make_task(uid, "b", minutes=1)
    store = LocalTaskStore(uid)
    store.load([a, b])

    store.apply_update(b.model_copy(update={"status": TaskStatus.IN_PROGRESS}))

    assert _ids(store.tasks) == [a.id, b.id]
    assert store.get(b.id).status is TaskStatus.IN_PROGRESS


def test_delete_nonexistent_id_does_not_raise():
    uid = uuid4()
    store = LocalTaskStore(uid)
    store.load([make_task(uid)])

    assert store.apply_delete(uuid4()) is False
    assert len(store) == 1


def test_foreign_tasks_never_enter_the_store():
    uid = uuid4()
    store = LocalTaskStore(uid)
    foreign = make_task(uuid4(), "not mine")

    store.load([foreign])
    store.apply_insert(foreign)

    assert len(store) == 0


def test_ids_stay_unique_under_mixed_sequences():
    uid = uuid4()
    store = LocalTaskStore(uid)
    pool = [make_task(uid, f"t{i}", minutes=i) for i in range(4)]
    store.load([pool[0], pool[0], pool[1]])

    ops = [
        ("insert", pool[1]), ("insert", pool[2]), ("update", pool[2]),
        ("delete", pool[0]), ("insert", pool[0]), ("insert", pool[0]),
        ("update", pool[3]), ("insert", pool[3]), ("insert", pool[3]),
        ("delete", pool[1]), ("delete", pool[1]), ("insert", pool[2]),
    ]
    for op, task in ops:
        if op == "insert":
            store.apply_insert(task)
        elif op == "update":
            store.apply_update(task)
        else:
            store.apply_delete(task.id)
        ids = _ids(store.tasks)
        assert len(ids) == len(set(ids))

    assert set(_ids(store.tasks)) == {pool[0].id, pool[2].id, pool[3].id}


def test_on_change_fires_after_each_mutation():
    uid = uuid4()
    hits = []
    store = LocalTaskStore(uid, on_change=lambda: hits.append(len(store)))
    t = make_task(uid)

    store.load([])
    store.apply_insert(t)
    store.apply_update(t)
    store.apply_delete(t.id)
    store.apply_delete(t.id)  # no-op → no callback

    assert hits == [0, 1, 1, 0]
