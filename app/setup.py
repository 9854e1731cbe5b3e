import argparse

from app.src import schemas
from app.src.constants import CACHE_ENABLED
from app.src.db import Customer, sessionMaker, engine, ORMbase
from app.src.orders import OrderManager
from app.src.redis import NullCache, RedisCache


# ----------------------------------- Demo Data -----------------------------------------------#
CUSTOMERS = [
    {"name": "Acme Logistics", "email": "contact@acmelogistics.com"},
    {"name": "Global Shipping Co", "email": "info@globalshipping.com"},
    {"name": "Fast Freight Inc", "email": "hello@fastfreight.com"},
    {"name": "Metro Transport", "email": "support@metrotransport.com"},
    {"name": "City Delivery Services", "email": "contact@citydelivery.com"},
]

ORDERS = [
    {
        "status": "QUOTED",
        "notes": "Urgent delivery required",
        "equipment_type": "Dry Van",
        "commodity": "Electronics",
        "weight_lbs": 5000,
        "miles": 15.5,
        "rate": 1250.00,
        "stops": [
            {
                "sequence": 1,
                "latitude": 40.7128,
                "longitude": -74.006,
                "address": "123 Main St, New York, NY 10001",
                "city": "New York",
                "state": "NY",
                "stop_type": "PICKUP",
                "planned_time": "2024-01-15T09:00:00Z",
            },
            {
                "sequence": 2,
                "latitude": 40.7589,
                "longitude": -73.9851,
                "address": "456 Broadway, New York, NY 10013",
                "city": "New York",
                "state": "NY",
                "stop_type": "DELIVERY",
                "planned_time": "2024-01-15T10:30:00Z",
            },
            {
                "sequence": 3,
                "latitude": 40.7505,
                "longitude": -73.9934,
                "address": "789 Park Ave, New York, NY 10019",
                "city": "New York",
                "state": "NY",
                "stop_type": "DELIVERY",
                "planned_time": "2024-01-15T12:00:00Z",
            },
        ],
    },
    {
        "status": "CONFIRMED",
        "notes": "Fragile items - handle with care",
        "equipment_type": "Refrigerated",
        "commodity": "Food Products",
        "weight_lbs": 8000,
        "miles": 25.3,
        "rate": 2100.50,
        "stops": [
            {
                "sequence": 1,
                "latitude": 34.0522,
                "longitude": -118.2437,
                "address": "100 Hollywood Blvd, Los Angeles, CA 90028",
                "stop_type": "PICKUP",
                "planned_time": "2024-01-16T08:00:00Z",
            },
            {
                "sequence": 2,
                "latitude": 34.0535,
                "longitude": -118.2451,
                "address": "200 Sunset Blvd, Los Angeles, CA 90028",
                "stop_type": "DELIVERY",
                "planned_time": "2024-01-16T09:30:00Z",
            },
        ],
    },
    {
        "status": "DRAFT",
        "notes": "Multi-stop delivery route",
        "equipment_type": "Flatbed",
        "commodity": "Construction Materials",
        "weight_lbs": 12000,
        "miles": 45.8,
        "rate": 3200.75,
        "flags": {"hazmat": True},
        "stops": [
            {
                "sequence": 1,
                "latitude": 41.8781,
                "longitude": -87.6298,
                "address": "300 Michigan Ave, Chicago, IL 60601",
                "stop_type": "PICKUP",
                "planned_time": "2024-01-17T07:00:00Z",
            },
            {
                "sequence": 2,
                "latitude": 41.8819,
                "longitude": -87.6278,
                "address": "400 State St, Chicago, IL 60605",
                "stop_type": "DELIVERY",
                "planned_time": "2024-01-17T08:15:00Z",
            },
            {
                "sequence": 3,
                "latitude": 41.8848,
                "longitude": -87.6324,
                "address": "500 Wacker Dr, Chicago, IL 60606",
                "stop_type": "DELIVERY",
                "planned_time": "2024-01-17T09:30:00Z",
            },
            {
                "sequence": 4,
                "latitude": 41.8886,
                "longitude": -87.6352,
                "address": "600 Lake Shore Dr, Chicago, IL 60611",
                "stop_type": "DELIVERY",
                "planned_time": "2024-01-17T11:00:00Z",
            },
        ],
    },
]


# ----------------------------------- Project Setup -------------------------------------------#
def removeTables():
    ORMbase.metadata.drop_all(engine)
    print("* All tables deleted")


def createTables():
    ORMbase.metadata.create_all(engine)
    print("* All tables created")


def initDB():
    with sessionMaker.begin() as session:
        customers = [Customer(**data) for data in CUSTOMERS]
        session.add_all(customers)
        session.flush()
        customerIds = [customer.id for customer in customers]
    print(f"* Created {len(customerIds)} customers")

    # Orders go through the lifecycle manager so the cache is invalidated as well
    cache = RedisCache.connect() if CACHE_ENABLED else NullCache()
    manager = OrderManager(sessionMaker, cache)
    try:
        for customerId, data in zip(customerIds, ORDERS):
            fParam = schemas.CreateOrderForm.model_validate(
                {"customer_id": customerId, **data}
            )
            manager.createOrder(fParam)
    finally:
        cache.close()
    print(f"* Created {len(ORDERS)} orders")


# Setup database
if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    parser.add_argument("-rm", action="store_true", help="remove tables")
    parser.add_argument("-cr", action="store_true", help="create tables")
    parser.add_argument("-init", action="store_true", help="initialize DB")
    args = parser.parse_args()

    if args.rm:
        removeTables()
    if args.cr:
        createTables()
    if args.init:
        initDB()
