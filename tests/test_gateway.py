import pytest

from app.models import Record, db
from services.errors import ConditionFailed, TransactionFailed
from services.gateway import (
    AttributeEquals,
    AttributeNotExists,
    Condition,
    IncrementMapEntry,
    Key,
    MapEntryAtLeast,
    MapHasRoomFor,
    RecordExists,
    RecordNotExists,
    RemoveMapEntry,
    SetAttributes,
    TransactItem,
)

T = "test-table"
K1 = Key("User#1", "A")
K2 = Key("User#1", "B")


def test_put_get_and_query(services):
    gw = services.gateway
    assert gw.get(T, K1) is None
    gw.put(T, K1, {"x": 1})
    gw.put(T, K2, {"x": 2})
    gw.put(T, Key("User#2", "A"), {"x": 3})
    assert gw.get(T, K1) == {"x": 1}
    rows = gw.query(T, "User#1")
    assert [r["sk"] for r in rows] == ["A", "B"]
    assert rows[1]["x"] == 2


def test_batch_get_returns_found_keys_only(services):
    gw = services.gateway
    gw.put(T, K1, {"x": 1})
    found = gw.batch_get(T, [K1, K2])
    assert found == {K1: {"x": 1}}


def test_conditional_put(services):
    gw = services.gateway
    gw.put(T, K1, {"x": 1}, condition=RecordNotExists())
    with pytest.raises(ConditionFailed):
        gw.put(T, K1, {"x": 2}, condition=RecordNotExists())
    assert gw.get(T, K1) == {"x": 1}


def test_update_creates_missing_record(services):
    gw = services.gateway
    attrs = gw.conditional_update(T, K1, IncrementMapEntry("counts", "apple", 3))
    assert attrs == {"counts": {"apple": 3}}
    attrs = gw.conditional_update(T, K1, IncrementMapEntry("counts", "apple", 2))
    assert attrs["counts"]["apple"] == 5


def test_conditional_update_rejected_leaves_record_untouched(services):
    gw = services.gateway
    gw.conditional_update(T, K1, IncrementMapEntry("counts", "apple", 1))
    with pytest.raises(ConditionFailed):
        gw.conditional_update(
            T, K1, IncrementMapEntry("counts", "apple", -2), MapEntryAtLeast("counts", "apple", 2)
        )
    assert gw.get(T, K1)["counts"]["apple"] == 1


def test_update_on_missing_record_with_exists_condition_does_not_create(services):
    gw = services.gateway
    with pytest.raises(ConditionFailed):
        gw.conditional_update(T, K1, SetAttributes({"name": "x"}), RecordExists())
    assert gw.get(T, K1) is None


def test_remove_map_entry(services):
    gw = services.gateway
    gw.put(T, K1, {"counts": {"a": 1, "b": 2}})
    attrs = gw.conditional_update(T, K1, RemoveMapEntry("counts", "a"))
    assert attrs["counts"] == {"b": 2}


def test_transaction_is_all_or_nothing_and_names_failing_item(services):
    gw = services.gateway
    gw.put(T, K1, {"counts": {"a": 1}})
    with pytest.raises(TransactionFailed) as info:
        gw.transact([
            TransactItem(T, K2, update=IncrementMapEntry("counts", "a", 5)),
            TransactItem(T, K1, update=IncrementMapEntry("counts", "a", -5),
                         condition=MapEntryAtLeast("counts", "a", 5)),
        ])
    assert info.value.index == 1
    assert gw.get(T, K2) is None
    assert gw.get(T, K1) == {"counts": {"a": 1}}


def test_transaction_commits_every_item(services):
    gw = services.gateway
    results = gw.transact([
        TransactItem(T, K1, put={"pet": True}, condition=RecordNotExists()),
        TransactItem(T, K2, update=SetAttributes({"active": "p1"}),
                     condition=AttributeNotExists("active")),
    ])
    assert results == [{"pet": True}, {"active": "p1"}]
    assert gw.get(T, K2) == {"active": "p1"}


def test_transaction_rejects_same_record_twice(services):
    with pytest.raises(ValueError):
        services.gateway.transact([
            TransactItem(T, K1, put={}),
            TransactItem(T, K1, put={}),
        ])


def test_transact_item_needs_update_or_put():
    with pytest.raises(ValueError):
        TransactItem(T, K1)
    with pytest.raises(ValueError):
        TransactItem(T, K1, update=SetAttributes({}), put={})


def test_conditions():
    assert AttributeEquals("t", None).holds(None)
    assert AttributeEquals("t", None).holds({})
    assert not AttributeEquals("t", None).holds({"t": 5})
    assert AttributeEquals("t", 5).holds({"t": 5})
    room = MapHasRoomFor("m", "c", 2)
    assert room.holds({"m": {"a": 1}})
    assert not room.holds({"m": {"a": 1, "b": 1}})
    assert room.holds({"m": {"a": 1, "b": 0}})
    assert MapHasRoomFor("m", "a", 2).holds({"m": {"a": 1, "b": 1}})


class RacingCondition(Condition):
    """Bumps the row version behind the session's back on first evaluation."""

    def __init__(self, key):
        self.key = key
        self.calls = 0

    def holds(self, attrs):
        self.calls += 1
        if self.calls == 1:
            table = Record.__table__
            db.session.connection().execute(
                table.update()
                .where(table.c.table_name == T, table.c.pk == self.key.pk, table.c.sk == self.key.sk)
                .values(version=table.c.version + 1)
            )
        return True


def test_lost_race_is_retried_against_fresh_row(services):
    gw = services.gateway
    gw.put(T, K1, {"counts": {"a": 1}})
    racing = RacingCondition(K1)
    attrs = gw.conditional_update(T, K1, IncrementMapEntry("counts", "a", 1), racing)
    assert racing.calls == 2
    assert attrs["counts"]["a"] == 2
    assert gw.get(T, K1)["counts"]["a"] == 2
