"""
Order lifecycle operations on top of the relational store and the cache.

`OrderManager` owns every read and write of orders and stops. Multi-row
writes run inside a single transaction; the cache is invalidated after the
transaction commits, so a failed write never touches cached projections.
"""

from logging import getLogger
from typing import Dict, List, Optional, Type

from pydantic import BaseModel, ValidationError
from sqlalchemy import delete, func, or_
from sqlalchemy.orm import sessionmaker
from sqlalchemy.orm.session import Session

from app.src import mappers, schemas, validators
from app.src.constants import ORDER_COUNTS_TTL, ORDER_DETAIL_TTL, ORDER_LIST_TTL
from app.src.db import Customer, Order, Stop
from app.src.enums import SortBy, StopType
from app.src.exceptions import InvalidIdentifier
from app.src.geometry import deriveRouteGeometry
from app.src.redis import (
    ORDER_COUNTS_KEY,
    invalidateOrder,
    invalidateOrderCounts,
    invalidateOrderList,
    orderKey,
    orderListKey,
)

logger = getLogger(__name__)


## Function
def makeStops(orderId: int, stops: List[schemas.StopForm]) -> List[Stop]:
    return [
        Stop(
            order_id=orderId,
            sequence=stop.sequence,
            latitude=stop.latitude,
            longitude=stop.longitude,
            planned_time=stop.planned_time,
            address=stop.address,
            city=stop.city,
            state=stop.state,
            stop_type=stop.stop_type,
        )
        for stop in stops
    ]


def loadStops(session: Session, orderIds: List[int]) -> Dict[int, List[Stop]]:
    """Fetch the stops of several orders at once, grouped by order id."""
    grouped = {orderId: [] for orderId in orderIds}
    if not orderIds:
        return grouped
    stops = (
        session.query(Stop)
        .filter(Stop.order_id.in_(orderIds))
        .order_by(Stop.order_id.asc(), Stop.sequence.asc())
        .all()
    )
    for stop in stops:
        grouped[stop.order_id].append(stop)
    return grouped


def searchOrders(session: Session, query: Optional[str]):
    """Build the filtered order query joined with the customer name."""
    statement = session.query(Order, Customer.name).join(
        Customer, Customer.id == Order.customer_id
    )
    query = (query or "").strip()
    if query:
        conditions = [
            Order.reference.icontains(query, autoescape=True),
            Customer.name.icontains(query, autoescape=True),
        ]
        # ASCII digits only, int() rejects other Unicode digits
        if query.isascii() and query.isdigit():
            conditions.append(Order.id == int(query))
        statement = statement.filter(or_(*conditions))
    return statement


def orderingOf(sort: SortBy) -> list:
    if sort == SortBy.OLDEST:
        return [Order.created_on.asc(), Order.id.asc()]
    if sort == SortBy.SHORTEST:
        return [Order.miles.asc(), Order.id.asc()]
    if sort == SortBy.LONGEST:
        return [Order.miles.desc(), Order.id.desc()]
    return [Order.created_on.desc(), Order.id.desc()]


class OrderManager:
    """
    Coordinates the order store, the geometry deriver and the cache.

    Args:
        sessionMaker (sessionmaker): Factory for store sessions. Every write
            opens its own transaction through `sessionMaker.begin()`.
        cache: Any object with the cache contract (`get`, `set`, `delete`,
            `deleteByPrefix`, `isAvailable`), normally `RedisCache` or
            `NullCache`.
    """

    def __init__(self, sessionMaker: sessionmaker, cache):
        self.sessionMaker = sessionMaker
        self.cache = cache

    # ------------------------------------- Cache access ------------------------------------ #
    def _cached(self, key: str, model: Type[BaseModel]) -> Optional[BaseModel]:
        if not self.cache.isAvailable():
            return None
        cached = self.cache.get(key)
        if cached is None:
            return None
        try:
            return model.model_validate(cached)
        except ValidationError as e:
            logger.warning("Discarding malformed cache entry %s: %s", key, e)
            self.cache.delete(key)
            return None

    def _remember(self, key: str, value, ttlSeconds: int) -> None:
        if self.cache.isAvailable():
            self.cache.set(key, value.model_dump(mode="json"), ttlSeconds)

    # ------------------------------------- Write paths ------------------------------------- #
    def createOrder(self, fParam: schemas.CreateOrderForm) -> int:
        """
        Persist a new order together with its stops.

        When no route geometry is supplied it is derived from the stops in the
        order they were given. The order row, its reference and every stop are
        written in one transaction.

        Args:
            fParam (schemas.CreateOrderForm): Validated order payload.

        Returns:
            int: The id of the new order.

        Raises:
            exceptions.UnknownValue: If the customer does not exist.
        """
        routeGeometry = fParam.route_geometry
        if routeGeometry is None:
            routeGeometry = deriveRouteGeometry(fParam.stops)

        with self.sessionMaker.begin() as session:
            validators.customerExists(session, fParam.customer_id)
            order = Order(
                customer_id=fParam.customer_id,
                reference=fParam.reference,
                status=fParam.status,
                notes=fParam.notes,
                route_geometry=routeGeometry,
                equipment_type=fParam.equipment_type,
                commodity=fParam.commodity,
                weight_lbs=fParam.weight_lbs,
                miles=fParam.miles,
                rate=fParam.rate,
                flags=fParam.flags,
            )
            session.add(order)
            session.flush()
            if order.reference is None:
                order.reference = mappers.makeReference(order.id)
            session.add_all(makeStops(order.id, fParam.stops))
            orderId = order.id

        invalidateOrderList(self.cache)
        invalidateOrderCounts(self.cache)
        logger.info("Created order %s with %s stops", orderId, len(fParam.stops))
        return orderId

    def updateStops(self, orderId: int, fParam: schemas.UpdateStopsForm) -> None:
        """
        Replace the whole stop set of an order and recompute its geometry.

        Raises:
            exceptions.InvalidIdentifier: If the order does not exist.
        """
        routeGeometry = deriveRouteGeometry(fParam.stops)
        with self.sessionMaker.begin() as session:
            order = session.query(Order).filter(Order.id == orderId).first()
            if order is None:
                raise InvalidIdentifier()
            session.execute(delete(Stop).where(Stop.order_id == orderId))
            session.add_all(makeStops(orderId, fParam.stops))
            order.route_geometry = routeGeometry

        invalidateOrder(self.cache, orderId)
        invalidateOrderCounts(self.cache)
        logger.info("Replaced stops of order %s with %s stops", orderId, len(fParam.stops))

    def updateOrderRate(self, orderId: int, rate: float) -> None:
        """
        Change the rate of an order, leaving stops and geometry untouched.

        Raises:
            exceptions.InvalidIdentifier: If the order does not exist.
        """
        with self.sessionMaker.begin() as session:
            order = session.query(Order).filter(Order.id == orderId).first()
            if order is None:
                raise InvalidIdentifier()
            order.rate = rate

        invalidateOrder(self.cache, orderId)

    # ------------------------------------- Read paths -------------------------------------- #
    def getOrderById(self, orderId: int) -> Optional[schemas.OrderDetail]:
        """
        Return the detail projection of an order, or None if it does not exist.

        Served from the cache when possible. Missing orders are not cached.
        """
        key = orderKey(orderId)
        cached = self._cached(key, schemas.OrderDetail)
        if cached is not None:
            return cached

        session = self.sessionMaker()
        try:
            row = (
                session.query(Order, Customer.name)
                .join(Customer, Customer.id == Order.customer_id)
                .filter(Order.id == orderId)
                .first()
            )
            if row is None:
                return None
            order, customerName = row
            stops = loadStops(session, [order.id])[order.id]
            detail = mappers.toOrderDetail(order, customerName, stops)
        finally:
            session.close()

        self._remember(key, detail, ORDER_DETAIL_TTL)
        return detail

    def listOrders(
        self,
        query: Optional[str] = None,
        page: int = 1,
        limit: int = 10,
        sort: Optional[str] = None,
    ) -> schemas.OrderPage:
        """
        Return one page of order summaries matching a free-text query.

        The query matches the reference and the customer name case-insensitively,
        and the order id exactly when it is numeric. Unknown sort values fall
        back to newest first.
        """
        query = (query or "").strip()
        sort = SortBy.normalize(sort)
        key = orderListKey(query, page, limit, sort.value)
        cached = self._cached(key, schemas.OrderPage)
        if cached is not None:
            return cached

        session = self.sessionMaker()
        try:
            statement = searchOrders(session, query)
            total = statement.count()
            rows = (
                statement.order_by(*orderingOf(sort))
                .offset((page - 1) * limit)
                .limit(limit)
                .all()
            )
            stops = loadStops(session, [order.id for order, _ in rows])
            items = [
                mappers.toOrderListItem(order, customerName, stops[order.id])
                for order, customerName in rows
            ]
        finally:
            session.close()

        result = schemas.OrderPage(
            data=items, meta=schemas.PageMeta(page=page, limit=limit, total=total)
        )
        self._remember(key, result, ORDER_LIST_TTL)
        return result

    def getOrderCounts(self) -> schemas.OrderCounts:
        """Return the number of orders and the number of delivery stops."""
        cached = self._cached(ORDER_COUNTS_KEY, schemas.OrderCounts)
        if cached is not None:
            return cached

        session = self.sessionMaker()
        try:
            inbound = session.query(func.count(Order.id)).scalar()
            outbound = (
                session.query(func.count(Stop.id))
                .filter(Stop.stop_type == StopType.DELIVERY)
                .scalar()
            )
        finally:
            session.close()

        counts = schemas.OrderCounts(inbound=inbound, outbound=outbound)
        self._remember(ORDER_COUNTS_KEY, counts, ORDER_COUNTS_TTL)
        return counts
