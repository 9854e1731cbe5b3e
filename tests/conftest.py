import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.main import app
from app.src import schemas
from app.src.db import Customer, ORMbase
from app.src.orders import OrderManager
from app.src.redis import RedisCache
from tests.fakes import FakeRedis


def stopData(sequence: int, stopType: str = "PICKUP", **overrides) -> dict:
    data = {
        "sequence": sequence,
        "latitude": 40.0 + sequence / 100,
        "longitude": -74.0 - sequence / 100,
        "address": f"{sequence}00 Main St, Springfield, IL 6270{sequence % 10}",
        "stop_type": stopType,
        "planned_time": "2024-01-15T09:00:00Z",
    }
    data.update(overrides)
    return data


def orderForm(customerId: int, stops=None, **overrides) -> schemas.CreateOrderForm:
    data = {
        "customer_id": customerId,
        "stops": stops or [stopData(1, "PICKUP"), stopData(2, "DELIVERY")],
    }
    data.update(overrides)
    return schemas.CreateOrderForm.model_validate(data)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    ORMbase.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def sessionFactory(engine):
    return sessionmaker(bind=engine, expire_on_commit=False)


@pytest.fixture
def redisClient():
    return FakeRedis()


@pytest.fixture
def cache(redisClient):
    return RedisCache(redisClient, retryInterval=0)


@pytest.fixture
def manager(sessionFactory, cache):
    return OrderManager(sessionFactory, cache)


@pytest.fixture
def customers(sessionFactory):
    with sessionFactory.begin() as session:
        acme = Customer(name="Acme Logistics", email="contact@acmelogistics.com")
        globalShipping = Customer(name="Global Shipping Co")
        session.add_all([acme, globalShipping])
        session.flush()
        return [acme.id, globalShipping.id]


@pytest.fixture
def client(manager):
    # The lifespan is not entered, so no real Redis connection is attempted
    app.state.orderManager = manager
    return TestClient(app)
