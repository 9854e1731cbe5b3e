from sqlalchemy import (
    JSON,
    TEXT,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
    create_engine,
    func,
)
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.dialects.postgresql import JSONB

from app.src.constants import DATABASE_URL
from app.src.enums import OrderStatus, StopType


# Global DBMS variables
engine = create_engine(url=DATABASE_URL, echo=False, pool_pre_ping=True)
sessionMaker = sessionmaker(bind=engine, expire_on_commit=False)
ORMbase = declarative_base()

# JSONB on PostgreSQL, plain JSON everywhere else
JSONType = JSON().with_variant(JSONB(), "postgresql")


# ----------------------------------- Freight DB Models ---------------------------------------#
class Customer(ORMbase):
    """
    Represents a shipper that places freight orders.

    Customers are created by the seeding flow and are treated as
    immutable by the order lifecycle.

    Columns:
        id (Integer):
            Primary key. Unique identifier for the customer.

        name (String(128)):
            Display name of the customer.
            Must not be null. Used in order listings and free-text search.

        email (TEXT):
            Optional email address for communication.

        contact (JSON):
            Optional free-form contact record (person, phone, etc.).

        billing (JSON):
            Optional free-form billing record (terms, address, etc.).

        created_on (DateTime):
            Timestamp indicating when the customer was created.
            Automatically set to the current timestamp at insertion.
    """

    __tablename__ = "customer"

    id = Column(Integer, primary_key=True)
    name = Column(String(128), nullable=False)
    email = Column(TEXT)
    contact = Column(JSONType)
    billing = Column(JSONType)
    # Metadata
    created_on = Column(DateTime(timezone=True), nullable=False, default=func.now())


class Order(ORMbase):
    """
    Represents a freight order, the central aggregate of the system.

    An order belongs to a customer and owns an ordered set of stops.
    Once created it always has at least one stop; the stop set is only
    ever replaced as a whole.

    Columns:
        id (Integer):
            Primary key. Unique identifier for the order.

        customer_id (Integer):
            Foreign key referencing the customer who placed the order, its indexed.
            Must not be null. Cascading deletion is applied when the customer is deleted.

        reference (String(64)):
            Human readable order code.
            Defaults to `ORD-` followed by the zero padded order id.

        status (Integer):
            Commercial state of the order.
            Mapped from the `OrderStatus` enum.
            Defaults to `OrderStatus.DRAFT`. Any value may be set, no transitions are enforced.

        notes (TEXT):
            Optional free text notes.

        route_geometry (JSON):
            Ordered list of `[latitude, longitude]` pairs describing the route.
            Derived from the stops unless supplied by the client.

        equipment_type (String(64)), commodity (String(128)):
            Optional descriptors of the load.

        weight_lbs (Numeric), miles (Numeric), rate (Numeric):
            Optional scalar descriptors of the load.

        flags (JSON):
            Open mapping of named boolean attributes (e.g. hazmat).
            Keys that are not present are read as false.

        updated_on (DateTime):
            Timestamp automatically updated whenever the order row is modified.

        created_on (DateTime):
            Timestamp indicating when the order was created.
            Automatically set to the current timestamp at insertion.
    """

    __tablename__ = "freight_order"

    id = Column(Integer, primary_key=True)
    customer_id = Column(
        Integer,
        ForeignKey("customer.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    reference = Column(String(64))
    status = Column(Integer, nullable=False, default=OrderStatus.DRAFT)
    notes = Column(TEXT)
    route_geometry = Column(JSONType)
    # Load details
    equipment_type = Column(String(64))
    commodity = Column(String(128))
    weight_lbs = Column(Numeric(12, 2, asdecimal=False))
    miles = Column(Numeric(12, 2, asdecimal=False))
    rate = Column(Numeric(12, 2, asdecimal=False))
    flags = Column(JSONType)
    # Metadata
    updated_on = Column(DateTime(timezone=True), onupdate=func.now())
    created_on = Column(DateTime(timezone=True), nullable=False, default=func.now())


class Stop(ORMbase):
    """
    Represents a pickup or delivery waypoint within an order.

    Stops are only created together with their order or by a full stop
    replacement, they are never patched individually.

    Columns:
        id (Integer):
            Primary key. Unique identifier for the stop.

        order_id (Integer):
            Foreign key referencing the owning order, its indexed.
            Must not be null. Cascading deletion is applied when the order is deleted.

        sequence (Integer):
            Position of the stop in the route, starting at 1.
            Must be unique per order. Presentation is always ordered by this value.

        latitude (Float), longitude (Float):
            WGS 84 coordinates of the stop.
            Latitude within [-90, 90], longitude within [-180, 180].

        planned_time (DateTime):
            Optional planned arrival time at the stop.

        address (TEXT):
            Street address of the stop. Must not be null or empty.

        city (String(128)), state (String(32)):
            Optional locality, parsed from the address at read time when absent.

        stop_type (Integer):
            Mapped from the `StopType` enum. Defaults to `StopType.PICKUP`.
            Rows without a value are read as `StopType.PICKUP`.

        created_on (DateTime):
            Timestamp indicating when the stop was inserted.
    """

    __tablename__ = "stop"
    __table_args__ = (UniqueConstraint("order_id", "sequence"),)

    id = Column(Integer, primary_key=True)
    order_id = Column(
        Integer,
        ForeignKey("freight_order.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    sequence = Column(Integer, nullable=False)
    latitude = Column(Float, nullable=False)
    longitude = Column(Float, nullable=False)
    planned_time = Column(DateTime(timezone=True))
    address = Column(TEXT, nullable=False)
    city = Column(String(128))
    state = Column(String(32))
    stop_type = Column(Integer, default=StopType.PICKUP)
    # Metadata
    created_on = Column(DateTime(timezone=True), nullable=False, default=func.now())
