"""Shared fixtures: SQLite DB, fake Redis, demo catalog, services."""

import os

# przed importem variant_cart, settings czytane przy imporcie
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("REDIS_URL", "redis://localhost:6379/15")
os.environ.setdefault("CELERY_BROKER_URL", "memory://")
os.environ.setdefault("CELERY_RESULT_BACKEND", "cache+memory://")
os.environ.setdefault("LINE_LOCK_WAIT_SECONDS", "0.3")

import fakeredis
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import variant_cart.data.models  # noqa: F401
from variant_cart.data.database import Base
from variant_cart.data.seed import seed_demo_catalog
from variant_cart.repos.catalog_repo import CatalogRepo
from variant_cart.services.cart_aggregator import CartAggregator
from variant_cart.services.cart_service import CartService
from variant_cart.services.lock_service import LockService
from variant_cart.services.override_store import SqlOverrideStore
from variant_cart.services.variant_resolver import VariantResolver


class RecordingNotifier:
    def __init__(self):
        self.events = []

    def publish(self, event, payload):
        self.events.append((event, payload))


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def redis_client():
    return fakeredis.FakeRedis(decode_responses=True)


@pytest.fixture
def lock_service(redis_client):
    return LockService(client=redis_client)


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def demo_product(db):
    return seed_demo_catalog(db)


@pytest.fixture
def fids(demo_product):
    """Feature ids demo produktu po nazwie."""
    return {f.name: f.id for f in demo_product.features}


def build_services(db, lock_service, notifier=None):
    catalog = CatalogRepo(db)
    resolver = VariantResolver(SqlOverrideStore(db))
    service = CartService(db, catalog, resolver, lock_service, notifier)
    return service, CartAggregator(db, catalog, resolver)


@pytest.fixture
def cart_service(db, lock_service, notifier):
    service, _ = build_services(db, lock_service, notifier)
    return service


@pytest.fixture
def aggregator(db, lock_service):
    _, aggregator = build_services(db, lock_service)
    return aggregator


@pytest.fixture
def make_services():
    return build_services
