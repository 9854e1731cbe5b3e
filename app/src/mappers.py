"""
Projection of stored orders into the list and detail views used by the web client.

Every function here is pure: rows in, pydantic models out.
"""

import re
from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence, Tuple

from app.src.constants import (
    DEFAULT_COMMODITY,
    DEFAULT_EQUIPMENT_TYPE,
    REFERENCE_DIGITS,
    REFERENCE_PREFIX,
    UNKNOWN_LOCATION,
)
from app.src.db import Order, Stop
from app.src.enums import OrderStatus, StopType
from app.src import schemas

STATE_PATTERN = re.compile(r"^([A-Z]{2,3})")
WEEKEND_DAYS = (5, 6)  # Saturday, Sunday


def makeReference(orderId: int) -> str:
    """
    Build the default order reference from its id.

    Example:
        >>> makeReference(42)
        'ORD-000042'
    """
    return f"{REFERENCE_PREFIX}{orderId:0{REFERENCE_DIGITS}d}"


def parseAddress(address: str) -> Tuple[Optional[str], Optional[str]]:
    """
    Extract city and state from a "Street, City, ST ZIP" style address.

    The city is the second to last comma separated part and the state is the
    leading 2-3 upper case letters of the last part.

    Example:
        >>> parseAddress("123 Main St, New York, NY 10001")
        ('New York', 'NY')
        >>> parseAddress("Warehouse 7")
        (None, None)
    """
    parts = [part.strip() for part in (address or "").split(",")]
    if len(parts) < 2:
        return None, None
    stateMatch = STATE_PATTERN.match(parts[-1])
    state = stateMatch.group(1) if stateMatch else None
    city = parts[-2] or None
    return city, state


def stopType(stop: Stop) -> StopType:
    # Legacy rows carry no stop type
    if stop.stop_type is None:
        return StopType.PICKUP
    return StopType(stop.stop_type)


def sortStops(stops: Sequence[Stop]) -> List[Stop]:
    return sorted(stops, key=lambda stop: stop.sequence)


def asUTC(value: Optional[datetime]) -> Optional[datetime]:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def firstPickup(stops: List[Stop]) -> Optional[Stop]:
    return next((s for s in stops if stopType(s) == StopType.PICKUP), None)


def lastDelivery(stops: List[Stop]) -> Optional[Stop]:
    return next((s for s in reversed(stops) if stopType(s) == StopType.DELIVERY), None)


def toLocation(stop: Optional[Stop]) -> Optional[schemas.Location]:
    if stop is None:
        return None
    parsedCity, parsedState = parseAddress(stop.address)
    return schemas.Location(
        city=stop.city or parsedCity or UNKNOWN_LOCATION,
        state=stop.state or parsedState or UNKNOWN_LOCATION,
    )


def isWeekend(value: Optional[datetime]) -> bool:
    value = asUTC(value)
    return value is not None and value.weekday() in WEEKEND_DAYS


def resolveFlags(order: Order, stops: List[Stop]) -> Dict[str, bool]:
    """
    Merge the stored flags over the derived defaults.

    Weekend pickup/delivery are derived from the planned times of the first
    pickup and the last delivery. Stored flags always win.
    """
    pickup = firstPickup(stops)
    delivery = lastDelivery(stops)
    flags = {
        "hazmat": False,
        "weekend_pickup": isWeekend(pickup.planned_time) if pickup else False,
        "weekend_delivery": isWeekend(delivery.planned_time) if delivery else False,
    }
    flags.update({key: bool(value) for key, value in (order.flags or {}).items()})
    return flags


def toOrderListItem(
    order: Order, customerName: str, stops: Sequence[Stop]
) -> schemas.OrderListItem:
    stops = sortStops(stops)
    pickup = firstPickup(stops)
    delivery = lastDelivery(stops)
    deliveries = sum(1 for s in stops if stopType(s) == StopType.DELIVERY)
    return schemas.OrderListItem(
        id=order.id,
        reference=order.reference or makeReference(order.id),
        customer_name=customerName,
        status=OrderStatus(order.status).name,
        origin=toLocation(stops[0] if stops else None),
        destination=toLocation(stops[-1] if stops else None),
        pickup_date=asUTC(pickup.planned_time) if pickup else None,
        delivery_date=asUTC(delivery.planned_time) if delivery else None,
        equipment_type=order.equipment_type or DEFAULT_EQUIPMENT_TYPE,
        commodity=order.commodity or DEFAULT_COMMODITY,
        weight_lbs=order.weight_lbs,
        miles=order.miles,
        rate=order.rate,
        stops_summary=schemas.StopsSummary(
            pickups=len(stops) - deliveries, deliveries=deliveries
        ),
        created_on=asUTC(order.created_on),
    )


def toStopDetail(stop: Stop) -> schemas.StopDetail:
    return schemas.StopDetail(
        id=stop.id,
        sequence=stop.sequence,
        latitude=stop.latitude,
        longitude=stop.longitude,
        planned_time=asUTC(stop.planned_time),
        address=stop.address,
        city=stop.city,
        state=stop.state,
        stop_type=stopType(stop).name,
    )


def toOrderDetail(
    order: Order, customerName: str, stops: Sequence[Stop]
) -> schemas.OrderDetail:
    stops = sortStops(stops)
    return schemas.OrderDetail(
        id=order.id,
        reference=order.reference or makeReference(order.id),
        customer_id=order.customer_id,
        customer_name=customerName,
        status=OrderStatus(order.status).name,
        notes=order.notes,
        route_geometry=order.route_geometry,
        equipment_type=order.equipment_type,
        commodity=order.commodity,
        weight_lbs=order.weight_lbs,
        miles=order.miles,
        rate=order.rate,
        flags=resolveFlags(order, stops),
        created_on=asUTC(order.created_on),
        stops=[toStopDetail(stop) for stop in stops],
    )
