from datetime import datetime
from typing import Dict, List, Optional
from pydantic import BaseModel, Field, field_validator

from app.src.constants import (
    MAX_LATITUDE,
    MAX_LONGITUDE,
    MIN_LATITUDE,
    MIN_LONGITUDE,
)
from app.src.enums import OrderStatus, StopType, enumByName


class RequestInfo(BaseModel):
    method: str
    path: str


class HealthStatus(BaseModel):
    status: str
    version: str


class ErrorResponse(BaseModel):
    detail: str


class MessageResponse(BaseModel):
    message: str


## Input Forms
LatLng = List[float]


class StopForm(BaseModel):
    sequence: int = Field(gt=0)
    latitude: float = Field(ge=MIN_LATITUDE, le=MAX_LATITUDE)
    longitude: float = Field(ge=MIN_LONGITUDE, le=MAX_LONGITUDE)
    planned_time: Optional[datetime] = None
    address: str = Field(min_length=1, max_length=1024)
    stop_type: StopType = StopType.PICKUP
    city: Optional[str] = Field(default=None, max_length=128)
    state: Optional[str] = Field(default=None, max_length=32)

    @field_validator("stop_type", mode="before")
    @classmethod
    def _parseStopType(cls, value):
        if value is None:
            return StopType.PICKUP
        return enumByName(StopType, value)


class StopListForm(BaseModel):
    stops: List[StopForm] = Field(min_length=1)

    @field_validator("stops")
    @classmethod
    def _uniqueSequences(cls, stops: List[StopForm]) -> List[StopForm]:
        sequences = [stop.sequence for stop in stops]
        if len(set(sequences)) != len(sequences):
            raise ValueError("Stop sequences must be unique")
        return stops


class UpdateStopsForm(StopListForm):
    pass


class CreateOrderForm(StopListForm):
    customer_id: int
    reference: Optional[str] = Field(default=None, max_length=64)
    status: OrderStatus = OrderStatus.DRAFT
    notes: Optional[str] = None
    route_geometry: Optional[List[LatLng]] = None
    equipment_type: Optional[str] = Field(default=None, max_length=64)
    commodity: Optional[str] = Field(default=None, max_length=128)
    weight_lbs: Optional[float] = Field(default=None, gt=0)
    miles: Optional[float] = Field(default=None, gt=0)
    rate: Optional[float] = Field(default=None, gt=0)
    flags: Optional[Dict[str, bool]] = None

    @field_validator("status", mode="before")
    @classmethod
    def _parseStatus(cls, value):
        if value is None:
            return OrderStatus.DRAFT
        return enumByName(OrderStatus, value)

    @field_validator("route_geometry")
    @classmethod
    def _pairs(cls, geometry: Optional[List[LatLng]]):
        if geometry is not None and any(len(pair) != 2 for pair in geometry):
            raise ValueError("Route geometry must be a list of [latitude, longitude] pairs")
        return geometry


class UpdateRateForm(BaseModel):
    rate: float = Field(gt=0)


## Output Schema
class Location(BaseModel):
    city: str
    state: str


class StopsSummary(BaseModel):
    pickups: int
    deliveries: int


class OrderListItem(BaseModel):
    id: int
    reference: str
    customer_name: str
    status: str
    origin: Optional[Location]
    destination: Optional[Location]
    pickup_date: Optional[datetime]
    delivery_date: Optional[datetime]
    equipment_type: str
    commodity: str
    weight_lbs: Optional[float]
    miles: Optional[float]
    rate: Optional[float]
    stops_summary: StopsSummary
    created_on: datetime


class PageMeta(BaseModel):
    page: int
    limit: int
    total: int


class OrderPage(BaseModel):
    data: List[OrderListItem]
    meta: PageMeta


class StopDetail(BaseModel):
    id: int
    sequence: int
    latitude: float
    longitude: float
    planned_time: Optional[datetime]
    address: str
    city: Optional[str]
    state: Optional[str]
    stop_type: str


class OrderDetail(BaseModel):
    id: int
    reference: str
    customer_id: int
    customer_name: str
    status: str
    notes: Optional[str]
    route_geometry: Optional[List[LatLng]]
    equipment_type: Optional[str]
    commodity: Optional[str]
    weight_lbs: Optional[float]
    miles: Optional[float]
    rate: Optional[float]
    flags: Dict[str, bool]
    created_on: datetime
    stops: List[StopDetail]


class OrderCounts(BaseModel):
    inbound: int = Field(description="Total number of orders")
    outbound: int = Field(description="Total number of delivery stops")


class CreatedOrder(BaseModel):
    id: int


class LineString(BaseModel):
    type: str
    coordinates: List[LatLng]
