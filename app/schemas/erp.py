from datetime import datetime
from typing import Any, Dict, Generic, List, Literal, Optional, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field

EntityStatus = Literal["active", "inactive"]

T = TypeVar("T")


def _contains(value: Optional[str], term: str) -> bool:
    return bool(value) and term.lower() in value.lower()


def _is_set(value: Optional[str]) -> bool:
    return bool(value) and value != "all"


# Token
class Token(BaseModel):
    token: str
    reqtime: str
    reqid: str
    acquired_at: datetime


# Depot Schemas
class Coordinates(BaseModel):
    lat: float
    lng: float


class Depot(BaseModel):
    id: str
    name: str
    location: str
    address: str = ""
    logo: str = ""
    capacity: int = 0
    container_count: int = 0  # Not reported by the depot listing
    status: EntityStatus
    province: str = ""
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    coordinates: Optional[Coordinates] = None


class DepotFilters(BaseModel):
    province: Optional[str] = None
    status: Optional[EntityStatus] = None
    search: Optional[str] = None

    def apply(self, depots: List[Depot]) -> List[Depot]:
        result = depots
        if _is_set(self.province):
            result = [d for d in result if _contains(d.province, self.province)]
        if self.status:
            result = [d for d in result if d.status == self.status]
        if self.search:
            term = self.search
            result = [
                d for d in result
                if _contains(d.name, term) or _contains(d.location, term) or _contains(d.address, term)
            ]
        return result


class DepotStatistics(BaseModel):
    total_depots: int
    active_depots: int
    total_capacity: int
    total_containers: int
    utilization_rate: int
    available_space: int


# Container Schemas
class ContainerRawData(BaseModel):
    """Upstream identifiers needed to register a gate-out for this container."""

    HangTauID: str = ""
    ContTypeSizeID: str = ""
    DepotID: str = ""
    ContID: str = ""
    ContainerSize: str = ""
    ContainerType: str = ""
    HangTau: str = ""
    Depot: str = ""
    full_item: Dict[str, Any] = Field(default_factory=dict)


class Container(BaseModel):
    id: str
    container_id: str = ""
    size: str
    type: str
    status: EntityStatus
    condition: str = ""
    depot_id: str = ""
    depot_name: str = ""
    owner: str = ""
    current_location: str = ""
    estimated_out_date: Optional[str] = None
    raw_api_data: ContainerRawData


class ContainerFilters(BaseModel):
    depot_id: Optional[str] = None
    type: Optional[str] = None
    size: Optional[str] = None
    status: Optional[EntityStatus] = None
    search: Optional[str] = None

    def apply(self, containers: List[Container]) -> List[Container]:
        result = containers
        if _is_set(self.depot_id):
            result = [c for c in result if c.depot_id == str(self.depot_id)]
        if _is_set(self.type):
            result = [c for c in result if c.type.lower() == self.type.lower()]
        if _is_set(self.size):
            result = [c for c in result if c.size.lower() == self.size.lower()]
        if self.status:
            result = [c for c in result if c.status == self.status]
        if self.search:
            term = self.search
            result = [
                c for c in result
                if _contains(c.container_id, term) or _contains(c.owner, term) or _contains(c.depot_name, term)
            ]
        return result


class RegisteredOrder(BaseModel):
    """A gate-out order already registered upstream."""

    id: str
    eir_number: str = ""
    container_number: str = ""
    type_size_id: str = ""
    order_status: str = ""
    order_type: str = ""
    depot: str = ""
    depot_id: str = ""
    depot_address: str = ""
    registered_at: str = ""
    vehicle_number: str = ""
    driver_name: str = ""
    driver_phone: str = ""
    shipping_line: str = ""
    shipping_line_id: str = ""
    company_name: str = ""
    company_id: str = ""
    total_amount: str = ""
    paid_amount: str = ""
    remaining_amount: str = ""
    user_id: str = ""
    transport_company_id: str = ""


# Shipping Line Schemas
class ShippingLine(BaseModel):
    id: str
    code: str
    name: str
    full_name: str
    scac_code: str = ""
    country: str = ""
    phone: str = ""
    address: str = ""
    tax_code: str = ""
    logo: str = ""
    color_template: str = ""
    status: EntityStatus
    created_at: str = ""
    updated_at: str = ""


class ShippingLineFilters(BaseModel):
    status: Optional[EntityStatus] = None
    country: Optional[str] = None
    search: Optional[str] = None

    def apply(self, lines: List[ShippingLine]) -> List[ShippingLine]:
        result = lines
        if self.status:
            result = [line for line in result if line.status == self.status]
        if _is_set(self.country):
            result = [line for line in result if _contains(line.country, self.country)]
        if self.search:
            term = self.search
            result = [
                line for line in result
                if _contains(line.name, term) or _contains(line.code, term) or _contains(line.full_name, term)
            ]
        return result


# Goods Schemas
class Goods(BaseModel):
    id: str
    name: str
    code: str = ""
    description: str = ""
    status: EntityStatus
    created_at: str = ""
    updated_at: str = ""


class GoodsFilters(BaseModel):
    status: Optional[EntityStatus] = None
    search: Optional[str] = None

    def apply(self, goods: List[Goods]) -> List[Goods]:
        result = goods
        if self.status:
            result = [g for g in result if g.status == self.status]
        if self.search:
            term = self.search
            result = [
                g for g in result
                if _contains(g.name, term) or _contains(g.code, term) or _contains(g.description, term)
            ]
        return result


# Container Type Schemas
class ContainerType(BaseModel):
    id: str
    name: str
    code: str
    iso_code: str = ""
    container_size: str = ""
    image_url: str = ""
    description: str = ""
    status: EntityStatus
    created_at: str = ""
    updated_at: str = ""


class ContainerTypeFilters(BaseModel):
    status: Optional[EntityStatus] = None
    search: Optional[str] = None

    def apply(self, types: List[ContainerType]) -> List[ContainerType]:
        result = types
        if self.status:
            result = [ct for ct in result if ct.status == self.status]
        if self.search:
            term = self.search
            result = [
                ct for ct in result
                if _contains(ct.name, term) or _contains(ct.code, term) or _contains(ct.description, term)
            ]
        return result


class CollectionStatistics(BaseModel):
    total: int
    active: int
    inactive: int
    by_country: Dict[str, int] = Field(default_factory=dict)


# Company / Driver / Location Schemas
class Company(BaseModel):
    id: str
    code: str
    name: str
    invoice_company_id: str = ""
    invoice_company_name: str = ""
    tax_code: str = ""
    address: str = ""
    phone: str = ""
    email: str = ""
    contact_person: str = ""
    type: str = "transport"
    status: EntityStatus
    source: Literal["account_info", "driver_api"]
    raw_api_data: Dict[str, Any] = Field(default_factory=dict)


class Driver(BaseModel):
    id: str
    full_name: str = ""
    phone: str = ""
    id_card: str = ""
    birth_date: str = ""
    vehicle_id: str = ""
    vehicle_plate: str = ""
    transport_company_id: str = ""
    status: EntityStatus


class Location(BaseModel):
    code: str
    name: str


class VehicleDriver(BaseModel):
    id: str
    full_name: str = ""
    phone: str = ""
    id_card: str = ""
    vehicle_plate: str = ""


class Vehicle(BaseModel):
    """A plate seen in a company's driver list, with every driver assigned to it."""

    id: str
    vehicle_plate: str
    transport_company_id: str = ""
    drivers: List[VehicleDriver] = Field(default_factory=list)


# Order Status Schemas
class OrderStatus(BaseModel):
    id: str
    code: str = ""
    name: str = ""
    description: str = ""
    color: str
    icon: str


# Gate-Out Schemas
class GateOutRequest(BaseModel):
    """Sanitized Create_GateOut_Reuse payload, keyed by the upstream field names."""

    HangTauID: int
    ContTypeSizeID: int
    SoChungTuNhapBai: str
    DonViVanTaiID: int
    SoXe: str
    NguoiTao: int
    CongTyInHoaDon_PhiHaTang: int
    CongTyInHoaDon: int
    DepotID: int
    SoLuongCont: int
    HangHoa: int


class GateOutResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool
    data: Optional[Dict[str, Any]] = None
    error: Optional[str] = None
    error_code: Optional[Union[str, int]] = Field(default=None, alias="errorCode")
    status_code: Optional[int] = Field(default=None, alias="statusCode")
    failure_kind: Optional[str] = Field(default=None, alias="failureKind")
    missing_fields: Optional[List[str]] = Field(default=None, alias="missingFields")
    invalid_fields: Optional[List[str]] = Field(default=None, alias="invalidFields")
    hint: Optional[str] = None


class RegisteredContainer(BaseModel):
    id: str
    user_id: int
    container_data: Dict[str, Any]
    gate_out_data: Dict[str, Any]
    registered_at: datetime


# Response envelopes
class ListResponse(BaseModel, Generic[T]):
    success: bool = True
    count: int
    data: List[T]

    @classmethod
    def of(cls, items: List[T]) -> "ListResponse[T]":
        return cls(count=len(items), data=items)


class CacheRefreshResponse(BaseModel):
    success: bool = True
    refreshed: Dict[str, int]


class CacheEntryStats(BaseModel):
    key: str
    item_count: int
    age_seconds: float
    ttl_seconds: float
    is_fresh: bool
