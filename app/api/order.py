from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, Field

from app.src.constants import DEFAULT_PAGE_LIMIT, MAX_PAGE_LIMIT
from app.src.db import Order
from app.src.enums import SortBy
from app.src import exceptions, getters, schemas
from app.src.functions import enumStr, fuseExceptionResponses
from app.src.geometry import toLineString
from app.src.loggers import logEvent
from app.src.orders import OrderManager
from app.src.urls import (
    URL_ORDER,
    URL_ORDER_COUNTS,
    URL_ORDER_DETAIL,
    URL_ORDER_RATE,
    URL_ORDER_ROUTE,
    URL_ORDER_STOPS,
)

route_order = APIRouter()


## Query Parameters
class QueryParams(BaseModel):
    query: Optional[str] = Field(Query(default=None, max_length=256))
    page: int = Field(Query(default=1, ge=1))
    limit: int = Field(Query(default=DEFAULT_PAGE_LIMIT, gt=0, le=MAX_PAGE_LIMIT))
    sort: Optional[str] = Field(Query(default=None, description=enumStr(SortBy)))


## Function
def fetchOrder(manager: OrderManager, orderId: int) -> schemas.OrderDetail:
    order = manager.getOrderById(orderId)
    if order is None:
        raise exceptions.InvalidIdentifier()
    return order


## API endpoints
@route_order.post(
    URL_ORDER,
    tags=["Order"],
    response_model=schemas.CreatedOrder,
    status_code=status.HTTP_201_CREATED,
    responses=fuseExceptionResponses([exceptions.UnknownValue(Order.customer_id)]),
    description="""
    Create a new freight order together with its stops.
    Stop sequences must be unique within the order.
    The route geometry is derived from the stops in the given order unless supplied.
    By default the status of the order is DRAFT and the stop type is PICKUP.
    """,
)
def create_order(
    fParam: schemas.CreateOrderForm,
    manager: OrderManager = Depends(getters.orderManager),
    request_info=Depends(getters.requestInfo),
):
    try:
        orderId = manager.createOrder(fParam)
        logEvent(
            request_info,
            {"order_id": orderId, "customer_id": fParam.customer_id, "stops": len(fParam.stops)},
        )
        return {"id": orderId}
    except Exception as e:
        exceptions.handle(e)


@route_order.get(
    URL_ORDER,
    tags=["Order"],
    response_model=schemas.OrderPage,
    description="""
    Fetch a page of order summaries.
    The query matches the order reference and customer name, or the order ID when numeric.
    Unknown sort values fall back to newest first.
    """,
)
def fetch_orders(
    qParam: QueryParams = Depends(),
    manager: OrderManager = Depends(getters.orderManager),
):
    try:
        return manager.listOrders(qParam.query, qParam.page, qParam.limit, qParam.sort)
    except Exception as e:
        exceptions.handle(e)


@route_order.get(
    URL_ORDER_COUNTS,
    tags=["Order"],
    response_model=schemas.OrderCounts,
    description="""
    Fetch the number of orders (inbound) and delivery stops (outbound).
    Counts may lag behind writes by up to one minute.
    """,
)
def fetch_order_counts(manager: OrderManager = Depends(getters.orderManager)):
    try:
        return manager.getOrderCounts()
    except Exception as e:
        exceptions.handle(e)


@route_order.get(
    URL_ORDER_DETAIL,
    tags=["Order"],
    response_model=schemas.OrderDetail,
    responses=fuseExceptionResponses([exceptions.InvalidIdentifier()]),
    description="""
    Fetch the full detail of an order, with its stops ordered by sequence.
    """,
)
def fetch_order(order_id: int, manager: OrderManager = Depends(getters.orderManager)):
    try:
        return fetchOrder(manager, order_id)
    except Exception as e:
        exceptions.handle(e)


@route_order.get(
    URL_ORDER_ROUTE,
    tags=["Order"],
    response_model=schemas.LineString,
    responses=fuseExceptionResponses([exceptions.InvalidIdentifier()]),
    description="""
    Fetch the route of an order as a GeoJSON LineString ([longitude, latitude] positions).
    """,
)
def fetch_order_route(
    order_id: int, manager: OrderManager = Depends(getters.orderManager)
):
    try:
        order = fetchOrder(manager, order_id)
        return toLineString(order.route_geometry or [])
    except Exception as e:
        exceptions.handle(e)


@route_order.api_route(
    URL_ORDER_STOPS,
    methods=["PUT", "POST"],
    tags=["Order"],
    response_model=schemas.MessageResponse,
    responses=fuseExceptionResponses([exceptions.InvalidIdentifier()]),
    description="""
    Replace every stop of an order.
    The route geometry is recomputed from the new stops in the given order.
    """,
)
def update_order_stops(
    order_id: int,
    fParam: schemas.UpdateStopsForm,
    manager: OrderManager = Depends(getters.orderManager),
    request_info=Depends(getters.requestInfo),
):
    try:
        manager.updateStops(order_id, fParam)
        logEvent(request_info, {"order_id": order_id, "stops": len(fParam.stops)})
        return {"message": "Stops updated"}
    except Exception as e:
        exceptions.handle(e)


@route_order.patch(
    URL_ORDER_RATE,
    tags=["Order"],
    response_model=schemas.MessageResponse,
    responses=fuseExceptionResponses([exceptions.InvalidIdentifier()]),
    description="""
    Update the rate of an order. Stops and route geometry are left untouched.
    """,
)
def update_order_rate(
    order_id: int,
    fParam: schemas.UpdateRateForm,
    manager: OrderManager = Depends(getters.orderManager),
    request_info=Depends(getters.requestInfo),
):
    try:
        manager.updateOrderRate(order_id, fParam.rate)
        logEvent(request_info, {"order_id": order_id, "rate": fParam.rate})
        return {"message": "Rate updated"}
    except Exception as e:
        exceptions.handle(e)
