"""
Unit tests for the product store.
"""

import pytest
from sqlalchemy.exc import IntegrityError


def test_insert_batch_is_all_or_nothing(store, make_record):
    records = [make_record("ok"), make_record(title=None)]

    with pytest.raises(IntegrityError):
        store.insert_batch(records)

    assert store.count() == 0


def test_insert_empty_batch(store):
    assert store.insert_batch([]) == 0
    assert store.count() == 0


def test_aggregates(store, make_record):
    store.insert_batch([make_record("a", price="10.00"), make_record("b", price="30.00")])

    assert store.count() == 2
    assert store.average("price") == pytest.approx(20.0)
    assert store.maximum("updated_at") is not None


def test_average_of_empty_store_is_none(store):
    assert store.average("price") is None


def test_delete_all(store, make_record):
    store.insert_batch([make_record("a"), make_record("b")])

    assert store.delete_all() == 2
    assert store.count() == 0


def test_unknown_field_rejected(store):
    with pytest.raises(ValueError):
        store.distinct("no_such_column")


def test_snapshot_ignores_batches_committed_after_first_read(store, make_record):
    store.insert_batch([make_record("a", "Shoes", "10.00")])

    with store.snapshot() as snapshot:
        assert snapshot.count() == 1
        store.insert_batch([make_record("b", "Clothes", "90.00"), make_record("c", "Toys", "90.00")])

        assert snapshot.count() == 1
        assert snapshot.count_distinct("category") == 1
        assert snapshot.average("price") == pytest.approx(10.0)

    assert store.count() == 3
