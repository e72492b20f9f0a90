import logging
from typing import Any, Dict, List, Optional, TypedDict

from app.schemas.erp import Container, ContainerFilters, ContainerRawData, RegisteredOrder
from app.services.erp.tagged_value import TaggedValue, decode, decode_first
from app.services.erp.transformers.base import ErpTransformer, status_from_flag

logger = logging.getLogger(__name__)

# Upstream size/type codes -> dashboard enumerations. Unknown codes take the default.
CONTAINER_SIZE_MAP = {
    "20'": "20ft",
    "40'": "40ft",
    "45'": "45ft",
}
DEFAULT_CONTAINER_SIZE = "40ft"

CONTAINER_TYPE_MAP = {
    "GP": "dry",
    "HC": "dry",
    "RF": "reefer",
    "OT": "opentop",
    "FR": "flatrack",
    "TK": "tank",
}
DEFAULT_CONTAINER_TYPE = "dry"

RAW_ID_FIELDS = ("HangTauID", "ContTypeSizeID", "DepotID", "ContID", "ContainerSize", "ContainerType", "HangTau", "Depot")


class ContainerRow(TypedDict, total=False):
    ID: TaggedValue
    ContID: TaggedValue
    ContainerSize: TaggedValue  # "20'", "40'", "45'"
    ContainerType: TaggedValue  # "GP", "RF", ...
    DepotID: TaggedValue
    Depot: TaggedValue
    HangTau: TaggedValue
    HangTauID: TaggedValue
    ContTypeSizeID: TaggedValue
    Active: TaggedValue
    TinhTrang: TaggedValue
    HanTraRong: TaggedValue


def map_container_size(code: str) -> str:
    return CONTAINER_SIZE_MAP.get(code, DEFAULT_CONTAINER_SIZE)


def map_container_type(code: str) -> str:
    return CONTAINER_TYPE_MAP.get(code.upper() if code else code, DEFAULT_CONTAINER_TYPE)


class ContainerTransformer(ErpTransformer[Container]):
    """Reusable containers currently in depots (GetListReUse_Now)."""

    REQID = "GetListReUse_Now"
    CACHE_KEY = "containers"
    REGISTERED_REQID = "GetList_DonHang_ReUse_Out_Now"
    REGISTERED_CACHE_PREFIX = "registered_orders:"

    def __init__(self, *args, registered_ttl_seconds: float = 60, **kwargs):
        super().__init__(*args, **kwargs)
        self.registered_ttl_seconds = registered_ttl_seconds

    def transform_row(self, row: ContainerRow) -> Optional[Container]:
        container_id = decode(row.get("ID"))
        if not container_id:
            return None

        raw = ContainerRawData(
            **{name: decode(row.get(name)) for name in RAW_ID_FIELDS},
            full_item=dict(row),
        )
        return Container(
            id=container_id,
            container_id=raw.ContID,
            size=map_container_size(raw.ContainerSize),
            type=map_container_type(raw.ContainerType),
            status=status_from_flag(row),
            condition=decode_first(row, "Condition", "TinhTrang"),
            depot_id=raw.DepotID,
            depot_name=raw.Depot,
            owner=raw.HangTau,
            current_location=raw.Depot,
            estimated_out_date=decode(row.get("HanTraRong")) or None,
            raw_api_data=raw,
        )

    async def fetch_containers(self, filters: Optional[ContainerFilters] = None) -> List[Container]:
        containers = await self.fetch_all()
        filtered = (filters or ContainerFilters()).apply(containers)
        logger.debug(f"Returning {len(filtered)} of {len(containers)} containers after filters")
        return filtered

    async def fetch_registered_orders(self, transport_company_id: Optional[str] = None) -> List[RegisteredOrder]:
        """Gate-out orders already registered upstream, optionally for one transport company."""
        payload: Dict[str, Any] = {}
        if transport_company_id:
            payload["DonViVanTaiID"] = str(transport_company_id)

        async def refresh() -> List[RegisteredOrder]:
            # The token must be minted with the company filter or the upstream returns every order
            rows = await self.load_rows(self.REGISTERED_REQID, payload, bind_token=True)
            return self.transform(rows, self.to_registered_order)

        key = f"{self.REGISTERED_CACHE_PREFIX}{transport_company_id or 'all'}"
        return await self.cache.get_or_refresh(key, self.registered_ttl_seconds, refresh)

    def to_registered_order(self, row: Dict[str, Any]) -> Optional[RegisteredOrder]:
        order_id = decode(row.get("ID"))
        if not order_id:
            return None
        return RegisteredOrder(
            id=order_id,
            eir_number=decode(row.get("EIRNo")),
            container_number=decode(row.get("SoChungTuNhapBai")),
            type_size_id=decode(row.get("ContTypeSizeID")),
            order_status=decode(row.get("TenTrangThaiDonHang")),
            order_type=decode(row.get("TenLoaiDonHang")),
            depot=decode(row.get("TenDepot")),
            depot_id=decode(row.get("DepotID")),
            depot_address=decode(row.get("DiaChiDepot")),
            registered_at=decode(row.get("NgayTao")),
            vehicle_number=decode(row.get("SoXe")),
            driver_name=decode(row.get("HoTen")),
            driver_phone=decode(row.get("SoDienThoai")),
            shipping_line=decode(row.get("TenCongTyVietTat")),
            shipping_line_id=decode(row.get("HangTauID")),
            company_name=decode(row.get("CongTyInHoaDon_TenCongTy")),
            company_id=decode(row.get("CongTyInHoaDon")),
            total_amount=decode(row.get("TongTien")),
            paid_amount=decode(row.get("TongTienDaThanhToan")),
            remaining_amount=decode(row.get("TongTienConLai")),
            user_id=decode(row.get("NguoiTao")),
            transport_company_id=decode(row.get("DonViVanTaiID")),
        )

    def clear_container_caches(self) -> None:
        """Drop container listings after a mutation changed them upstream."""
        self.cache.invalidate(self.CACHE_KEY)
        self.cache.invalidate_prefix(self.REGISTERED_CACHE_PREFIX)
