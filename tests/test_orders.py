import json

import pytest
from sqlalchemy.exc import IntegrityError

from app.src import exceptions, schemas
from app.src.db import Order, Stop
from app.src.orders import OrderManager
from app.src.redis import NullCache, RedisCache
from tests.conftest import orderForm, stopData
from tests.fakes import FakeRedis


# ---------------------------------------------------------------------------
# Create and fetch
# ---------------------------------------------------------------------------
def test_create_returns_detail_with_sorted_stops(manager, customers):
    stops = [stopData(1), stopData(3, "DELIVERY"), stopData(2, "DELIVERY")]

    orderId = manager.createOrder(orderForm(customers[0], stops))
    detail = manager.getOrderById(orderId)

    assert [stop.sequence for stop in detail.stops] == [1, 2, 3]
    assert detail.customer_name == "Acme Logistics"
    assert detail.status == "DRAFT"
    assert detail.reference == f"ORD-{orderId:06d}"


def test_create_derives_geometry_in_input_order(manager, customers):
    stops = [stopData(1), stopData(3, "DELIVERY"), stopData(2, "DELIVERY")]

    detail = manager.getOrderById(manager.createOrder(orderForm(customers[0], stops)))

    assert detail.route_geometry == [
        [stop["latitude"], stop["longitude"]] for stop in stops
    ]


def test_create_keeps_supplied_geometry_and_reference(manager, customers):
    fParam = orderForm(
        customers[0],
        reference="PO-1001",
        status="CONFIRMED",
        route_geometry=[[1.0, 2.0], [3.0, 4.0], [5.0, 6.0]],
        flags={"hazmat": True},
    )

    detail = manager.getOrderById(manager.createOrder(fParam))

    assert detail.reference == "PO-1001"
    assert detail.status == "CONFIRMED"
    assert detail.route_geometry == [[1.0, 2.0], [3.0, 4.0], [5.0, 6.0]]
    assert detail.flags["hazmat"] is True


def test_create_defaults_stop_type_to_pickup(manager, customers):
    stops = [stopData(1), {**stopData(2), "stop_type": None}]

    detail = manager.getOrderById(manager.createOrder(orderForm(customers[0], stops)))

    assert [stop.stop_type for stop in detail.stops] == ["PICKUP", "PICKUP"]


def test_create_with_unknown_customer(manager, customers, sessionFactory):
    with pytest.raises(exceptions.UnknownValue):
        manager.createOrder(orderForm(9999))

    with sessionFactory() as session:
        assert session.query(Order).count() == 0


def test_create_rolls_back_when_stop_insert_fails(manager, customers, sessionFactory):
    # Bypass form validation so the unique (order_id, sequence) constraint fires
    stops = [schemas.StopForm(**stopData(1)), schemas.StopForm(**stopData(1))]
    fParam = schemas.CreateOrderForm.model_construct(customer_id=customers[0], stops=stops)

    with pytest.raises(IntegrityError):
        manager.createOrder(fParam)

    with sessionFactory() as session:
        assert session.query(Order).count() == 0
        assert session.query(Stop).count() == 0


def test_duplicate_sequences_are_rejected_before_the_store(manager, customers):
    with pytest.raises(ValueError, match="Stop sequences must be unique"):
        orderForm(customers[0], [stopData(1), stopData(1)])

    assert manager.listOrders().meta.total == 0


def test_get_missing_order(manager, redisClient):
    assert manager.getOrderById(404) is None
    assert "order:404" not in redisClient.store


# ---------------------------------------------------------------------------
# Listing
# ---------------------------------------------------------------------------
def test_list_filters_by_reference_customer_and_id(manager, customers):
    first = manager.createOrder(orderForm(customers[0], reference="PO-ALPHA"))
    second = manager.createOrder(orderForm(customers[1], reference="PO-BETA"))

    byReference = manager.listOrders(query="alpha")
    byCustomer = manager.listOrders(query="GLOBAL")
    byId = manager.listOrders(query=str(second))

    assert [item.id for item in byReference.data] == [first]
    assert [item.id for item in byCustomer.data] == [second]
    assert second in [item.id for item in byId.data]
    assert manager.listOrders(query="nothing-matches").meta.total == 0


def test_list_paginates_newest_first(manager, customers):
    orderIds = [manager.createOrder(orderForm(customers[0])) for _ in range(3)]

    firstPage = manager.listOrders(page=1, limit=2)
    secondPage = manager.listOrders(page=2, limit=2)

    assert [item.id for item in firstPage.data] == [orderIds[2], orderIds[1]]
    assert [item.id for item in secondPage.data] == [orderIds[0]]
    assert secondPage.meta.model_dump() == {"page": 2, "limit": 2, "total": 3}


def test_list_sort_orders(manager, customers):
    fifty = manager.createOrder(orderForm(customers[0], miles=50))
    unknown = manager.createOrder(orderForm(customers[0]))
    ten = manager.createOrder(orderForm(customers[0], miles=10))

    shortest = [item.id for item in manager.listOrders(sort="shortest").data]
    longest = [item.id for item in manager.listOrders(sort="longest").data]
    oldest = [item.id for item in manager.listOrders(sort="oldest").data]
    fallback = [item.id for item in manager.listOrders(sort="by-colour").data]

    assert shortest.index(ten) < shortest.index(fifty)
    assert longest.index(fifty) < longest.index(ten)
    assert unknown in shortest
    assert oldest == [fifty, unknown, ten]
    assert fallback == [ten, unknown, fifty]


def test_list_item_projection(manager, customers):
    stops = [
        stopData(1, address="123 Main St, New York, NY 10001"),
        stopData(2, "DELIVERY", address="200 Sunset Blvd, Los Angeles, CA 90028",
                 planned_time="2024-01-20T10:00:00Z"),
    ]
    manager.createOrder(orderForm(customers[0], stops, miles=2790.5))

    item = manager.listOrders().data[0]

    assert item.origin.model_dump() == {"city": "New York", "state": "NY"}
    assert item.destination.model_dump() == {"city": "Los Angeles", "state": "CA"}
    assert item.delivery_date.isoformat() == "2024-01-20T10:00:00+00:00"
    assert item.miles == 2790.5
    assert item.equipment_type == "Not Specified"


def test_list_query_with_non_ascii_digits(manager, customers):
    manager.createOrder(orderForm(customers[0]))

    assert manager.listOrders(query="²").meta.total == 0
    assert manager.listOrders(query="①").meta.total == 0


def test_list_query_matches_wildcards_literally(manager, customers):
    manager.createOrder(orderForm(customers[0], reference="PO-1"))
    underscored = manager.createOrder(orderForm(customers[0], reference="PO_2"))

    assert manager.listOrders(query="%").meta.total == 0
    assert [item.id for item in manager.listOrders(query="_").data] == [underscored]


def test_list_query_is_trimmed_before_caching(manager, customers, redisClient):
    manager.createOrder(orderForm(customers[0]))

    padded = manager.listOrders(query="  acme ")
    plain = manager.listOrders(query="acme")

    assert padded == plain
    assert [key for key in redisClient.store if key.startswith("orders:list:")] == [
        "orders:list:acme:1:10:newest"
    ]


# ---------------------------------------------------------------------------
# Updates
# ---------------------------------------------------------------------------
def test_update_stops_replaces_the_whole_set(manager, customers):
    orderId = manager.createOrder(orderForm(customers[0]))
    newStops = [stopData(5, "DELIVERY", latitude=1.0, longitude=2.0), stopData(4, latitude=3.0, longitude=4.0)]

    manager.updateStops(orderId, schemas.UpdateStopsForm.model_validate({"stops": newStops}))
    detail = manager.getOrderById(orderId)

    assert [stop.sequence for stop in detail.stops] == [4, 5]
    assert detail.route_geometry == [[1.0, 2.0], [3.0, 4.0]]


def test_update_stops_of_missing_order(manager, customers):
    form = schemas.UpdateStopsForm.model_validate({"stops": [stopData(1)]})

    with pytest.raises(exceptions.InvalidIdentifier):
        manager.updateStops(404, form)


def test_update_rate_leaves_stops_untouched(manager, customers):
    orderId = manager.createOrder(orderForm(customers[0], rate=1250))
    before = manager.getOrderById(orderId)

    manager.updateOrderRate(orderId, 2500.00)
    after = manager.getOrderById(orderId)

    assert after.rate == 2500.00
    assert after.stops == before.stops
    assert after.route_geometry == before.route_geometry


def test_update_rate_of_missing_order(manager):
    with pytest.raises(exceptions.InvalidIdentifier):
        manager.updateOrderRate(404, 100)


def test_update_stops_rolls_back_when_stop_insert_fails(manager, customers, sessionFactory, redisClient):
    orderId = manager.createOrder(orderForm(customers[0]))
    before = manager.getOrderById(orderId)
    # Bypass form validation so the unique (order_id, sequence) constraint fires
    stops = [schemas.StopForm(**stopData(1, latitude=1.0)), schemas.StopForm(**stopData(1, latitude=2.0))]
    fParam = schemas.UpdateStopsForm.model_construct(stops=stops)

    with pytest.raises(IntegrityError):
        manager.updateStops(orderId, fParam)

    with sessionFactory() as session:
        sequences = [
            stop.sequence
            for stop in session.query(Stop).filter(Stop.order_id == orderId).order_by(Stop.sequence)
        ]
        order = session.query(Order).filter(Order.id == orderId).one()
        assert sequences == [1, 2]
        assert order.route_geometry == before.route_geometry
    assert f"order:{orderId}" in redisClient.store


# ---------------------------------------------------------------------------
# Counts
# ---------------------------------------------------------------------------
def test_counts(manager, customers):
    manager.createOrder(orderForm(customers[0]))
    manager.createOrder(
        orderForm(customers[1], [stopData(1), stopData(2, "DELIVERY"), stopData(3, "DELIVERY")])
    )

    counts = manager.getOrderCounts()

    assert counts.model_dump() == {"inbound": 2, "outbound": 3}


# ---------------------------------------------------------------------------
# Cache coherence
# ---------------------------------------------------------------------------
def test_reads_are_cached_with_their_lifetimes(manager, customers, redisClient):
    orderId = manager.createOrder(orderForm(customers[0]))

    manager.getOrderById(orderId)
    manager.listOrders(query="acme", page=1, limit=10, sort="oldest")
    manager.getOrderCounts()

    assert redisClient.ttls == {
        f"order:{orderId}": 600,
        "orders:list:acme:1:10:oldest": 300,
        "orders:counts": 60,
    }


def test_cached_detail_is_served_until_invalidated(manager, customers, sessionFactory):
    orderId = manager.createOrder(orderForm(customers[0], notes="original"))
    first = manager.getOrderById(orderId)
    with sessionFactory.begin() as session:
        session.query(Order).filter(Order.id == orderId).update({"notes": "changed"})

    assert manager.getOrderById(orderId) == first

    manager.updateOrderRate(orderId, 900)
    assert manager.getOrderById(orderId).notes == "changed"


def test_create_invalidates_list_pages_and_counts(manager, customers):
    manager.createOrder(orderForm(customers[0]))
    assert manager.listOrders().meta.total == 1
    assert manager.getOrderCounts().inbound == 1

    manager.createOrder(orderForm(customers[0]))

    assert manager.listOrders().meta.total == 2
    assert manager.getOrderCounts().inbound == 2


def test_update_stops_invalidates_detail_list_and_counts(manager, customers):
    orderId = manager.createOrder(orderForm(customers[0]))
    manager.getOrderById(orderId)
    manager.listOrders()
    assert manager.getOrderCounts().outbound == 1

    stops = [stopData(1), stopData(2, "DELIVERY"), stopData(3, "DELIVERY", city="Peoria", state="IL")]
    manager.updateStops(orderId, schemas.UpdateStopsForm.model_validate({"stops": stops}))

    assert len(manager.getOrderById(orderId).stops) == 3
    assert manager.listOrders().data[0].destination.city == "Peoria"
    assert manager.getOrderCounts().outbound == 2


def test_update_rate_invalidates_list_pages(manager, customers):
    orderId = manager.createOrder(orderForm(customers[0], rate=100))
    assert manager.listOrders().data[0].rate == 100

    manager.updateOrderRate(orderId, 250)

    assert manager.listOrders().data[0].rate == 250


@pytest.mark.parametrize("cache", [NullCache(), RedisCache(FakeRedis(down=True))])
def test_all_operations_work_without_cache(sessionFactory, customers, cache):
    manager = OrderManager(sessionFactory, cache)

    orderId = manager.createOrder(orderForm(customers[0]))
    manager.updateStops(
        orderId,
        schemas.UpdateStopsForm.model_validate({"stops": [stopData(2, "DELIVERY"), stopData(1)]}),
    )
    manager.updateOrderRate(orderId, 2500)

    detail = manager.getOrderById(orderId)
    assert [stop.sequence for stop in detail.stops] == [1, 2]
    assert detail.rate == 2500
    assert manager.listOrders().meta.total == 1
    assert manager.getOrderCounts().model_dump() == {"inbound": 1, "outbound": 1}


def test_cache_outage_mid_session(manager, customers, redisClient):
    orderId = manager.createOrder(orderForm(customers[0], rate=100))
    manager.getOrderById(orderId)

    redisClient.down = True
    manager.updateOrderRate(orderId, 300)

    assert manager.getOrderById(orderId).rate == 300


def test_update_rate_keeps_counts_cached(manager, customers, redisClient):
    orderId = manager.createOrder(orderForm(customers[0]))
    manager.getOrderCounts()

    manager.updateOrderRate(orderId, 500)

    assert "orders:counts" in redisClient.store


def test_malformed_cache_entries_fall_through_to_the_store(manager, customers, redisClient):
    orderId = manager.createOrder(orderForm(customers[0]))
    redisClient.store[f"order:{orderId}"] = '{"id": 1}'
    redisClient.store["orders:list::1:10:newest"] = "[]"
    redisClient.store["orders:counts"] = '{"inbound": "many"}'

    detail = manager.getOrderById(orderId)
    page = manager.listOrders()
    counts = manager.getOrderCounts()

    assert detail.id == orderId
    assert len(detail.stops) == 2
    assert page.meta.total == 1
    assert counts.model_dump() == {"inbound": 1, "outbound": 1}
    # Entries are rebuilt from the store
    assert json.loads(redisClient.store[f"order:{orderId}"])["id"] == orderId
    assert json.loads(redisClient.store["orders:counts"]) == {"inbound": 1, "outbound": 1}
