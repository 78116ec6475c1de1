"""Combination Override Store: tests for SQL and in-memory stores.

Tests cover:
    - lookup is a set-equality match (no subset/superset)
    - upsert is last-write-wins per (product, kind, signature)
    - remove by signature and kind
    - concurrent SQL inserts of one combination collapse into one row
    - in-memory readers never observe a half-written override
"""

import threading

import pytest
from sqlalchemy import create_engine
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import sessionmaker

from variant_cart.data.database import Base
from variant_cart.data.models import OverrideModel
from variant_cart.domain.errors import AmbiguousOverride
from variant_cart.domain.overrides import Override, OverrideKind
from variant_cart.domain.signature import CombinationSignature
from variant_cart.services.override_store import InMemoryOverrideStore, SqlOverrideStore


def sig(selection):
    return CombinationSignature.from_selection(selection)


RED_XL = sig({1: "red", 2: "XL"})


@pytest.fixture(params=["sql", "memory"])
def store(request, db, demo_product):
    if request.param == "sql":
        return SqlOverrideStore(db)
    return InMemoryOverrideStore()


@pytest.fixture
def pid(demo_product):
    return demo_product.id


# ─── Override value type ─────────────────────────────────────────

def test_single_feature_override_must_span_one_feature():
    with pytest.raises(ValueError):
        Override(signature=RED_XL, kind=OverrideKind.FEATURE)


def test_override_needs_tokens():
    with pytest.raises(ValueError):
        Override(signature=sig({}))


# ─── both stores ─────────────────────────────────────────────────

def test_lookup_after_upsert(store, pid):
    store.upsert(pid, Override(signature=RED_XL, additional_price=-100, stock=1))

    found = store.lookup(pid, sig({2: "XL", 1: "red"}))

    assert found is not None
    assert found.additional_price == -100
    assert found.stock == 1


def test_lookup_misses_subset_and_superset(store, pid):
    store.upsert(pid, Override(signature=RED_XL, additional_price=-100))

    assert store.lookup(pid, sig({1: "red"})) is None
    assert store.lookup(pid, sig({1: "red", 2: "XL", 3: "front"})) is None


def test_lookup_is_scoped_by_product(store, pid):
    store.upsert(pid, Override(signature=RED_XL, additional_price=-100))
    assert store.lookup(pid + 1000, RED_XL) is None


def test_upsert_is_last_write_wins(store, pid):
    store.upsert(pid, Override(signature=RED_XL, additional_price=1, stock=5))
    store.upsert(pid, Override(signature=RED_XL, additional_price=2, stock=6))

    found = store.lookup(pid, RED_XL)

    assert (found.additional_price, found.stock) == (2, 6)


def test_group_and_feature_overrides_coexist_and_group_wins(store, pid):
    size_xl = sig({2: "XL"})
    store.upsert(pid, Override(signature=size_xl, kind="feature", additional_price=1))
    store.upsert(pid, Override(signature=size_xl, kind="group", additional_price=2))

    assert store.lookup(pid, size_xl).kind == OverrideKind.GROUP

    assert store.remove(pid, size_xl, kind=OverrideKind.GROUP) == 1
    assert store.lookup(pid, size_xl).kind == OverrideKind.FEATURE


def test_remove(store, pid):
    store.upsert(pid, Override(signature=RED_XL, additional_price=1))
    assert store.remove(pid, RED_XL) == 1
    assert store.lookup(pid, RED_XL) is None
    assert store.remove(pid, RED_XL) == 0


# ─── SQL specifics ───────────────────────────────────────────────

def test_sql_allows_one_row_per_kind_and_combination(db, pid):
    for price in (1, 2):
        db.add(
            OverrideModel(
                product_id=pid,
                kind="group",
                signature_key=RED_XL.key,
                bind=RED_XL.to_pairs(),
                additional_price=price,
            )
        )
    with pytest.raises(IntegrityError):
        db.commit()
    db.rollback()


def test_sql_upsert_racing_an_insert_of_same_combination(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path / 'overrides.db'}")
    Base.metadata.create_all(engine)
    factory = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)

    with factory() as session_a, factory() as session_b:
        store_a, store_b = SqlOverrideStore(session_a), SqlOverrideStore(session_b)
        read_rows = store_a._rows
        reads = []

        def stale_first_read(*args):
            # A nie widzi jeszcze wiersza, B zapisuje go w miedzyczasie
            reads.append(args)
            if len(reads) == 1:
                store_b.upsert(1, Override(signature=RED_XL, additional_price=1, stock=9))
                return []
            return read_rows(*args)

        store_a._rows = stale_first_read
        store_a.upsert(1, Override(signature=RED_XL, additional_price=2, stock=4))

    with factory() as session:
        rows = session.query(OverrideModel).filter_by(product_id=1, signature_key=RED_XL.key).all()
        found = SqlOverrideStore(session).lookup(1, RED_XL)

    engine.dispose()
    assert len(rows) == 1
    assert (found.additional_price, found.stock) == (2, 4)


def test_sql_row_keeps_canonical_key_and_pairs(db, pid):
    SqlOverrideStore(db).upsert(pid, Override(signature=RED_XL, stock=3))

    row = db.query(OverrideModel).filter_by(product_id=pid, signature_key=RED_XL.key).one()

    assert row.bind == [[1, "red"], [2, "XL"]]
    assert row.signature == RED_XL


# ─── in-memory specifics ─────────────────────────────────────────

def test_duplicate_remote_overrides_are_ambiguous():
    store = InMemoryOverrideStore()
    store.replace_product(
        1, [Override(signature=RED_XL, additional_price=1), Override(signature=RED_XL, additional_price=2)]
    )
    with pytest.raises(AmbiguousOverride):
        store.lookup(1, RED_XL)


def test_replace_product_drops_stale_overrides():
    store = InMemoryOverrideStore()
    store.upsert(1, Override(signature=RED_XL, additional_price=1))

    store.replace_product(1, [Override(signature=sig({1: "blue"}), additional_price=2)])

    assert store.lookup(1, RED_XL) is None
    assert store.lookup(1, sig({1: "blue"})).additional_price == 2


def test_readers_never_see_half_written_override():
    store = InMemoryOverrideStore()
    store.upsert(1, Override(signature=RED_XL, additional_price=0, stock=0))
    stop = threading.Event()
    torn = []

    def writer():
        i = 0
        while not stop.is_set():
            i += 1
            store.upsert(1, Override(signature=RED_XL, additional_price=-i, stock=i))

    def reader():
        for _ in range(2000):
            found = store.lookup(1, RED_XL)
            if found is None or found.additional_price != -found.stock:
                torn.append(found)

    w = threading.Thread(target=writer)
    readers = [threading.Thread(target=reader) for _ in range(4)]
    w.start()
    for r in readers:
        r.start()
    for r in readers:
        r.join()
    stop.set()
    w.join()

    assert torn == []
