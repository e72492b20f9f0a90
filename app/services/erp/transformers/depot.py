from typing import Any, Dict, List, Mapping, Optional, TypedDict

from app.schemas.erp import Coordinates, Depot, DepotFilters, DepotStatistics
from app.services.erp.cache import CollectionCache
from app.services.erp.dispatcher import RequestDispatcher
from app.services.erp.tagged_value import TaggedValue, decode, parse_coordinates, parse_leading_int
from app.services.erp.transformers.base import ErpTransformer, status_from_flag
from app.services.erp.transformers.location import UNKNOWN_LOCATION, LocationTransformer


class DepotRow(TypedDict, total=False):
    ID: TaggedValue
    TenDepot: TaggedValue
    TenVietTat: TaggedValue
    DiaChi: TaggedValue
    Maxstock: TaggedValue
    Active: TaggedValue
    ToaDo: TaggedValue  # "lat, lng"
    logo_inform_whm: TaggedValue
    ThanhPho: TaggedValue  # location code


class DepotTransformer(ErpTransformer[Depot]):
    REQID = "iContainerHub_Depot"
    CACHE_KEY = "depots"

    def __init__(
        self,
        dispatcher: RequestDispatcher,
        cache: CollectionCache,
        ttl_seconds: float,
        locations: LocationTransformer,
        asset_base_url: str = "",
    ):
        super().__init__(dispatcher, cache, ttl_seconds)
        self.locations = locations
        self.asset_base_url = asset_base_url.rstrip("/")

    async def _refresh(self) -> List[Depot]:
        rows = await self.load_rows(self.REQID)
        province_names = await self.locations.names_by_code()
        return self.transform(rows, lambda row: self.to_depot(row, province_names))

    def transform_row(self, row: Dict[str, Any]) -> Optional[Depot]:
        return self.to_depot(row, {})

    def to_depot(self, row: DepotRow, province_names: Mapping[str, str]) -> Optional[Depot]:
        depot_id = decode(row.get("ID"))
        if not depot_id:
            return None

        short_name = decode(row.get("TenVietTat"))
        name = decode(row.get("TenDepot")) or short_name or "Unknown Depot"
        logo_path = decode(row.get("logo_inform_whm"))
        coords = parse_coordinates(decode(row.get("ToaDo")))

        return Depot(
            id=depot_id,
            name=name,
            location=short_name or name,
            address=decode(row.get("DiaChi")),
            logo=f"{self.asset_base_url}{logo_path}" if logo_path else "",
            capacity=parse_leading_int(decode(row.get("Maxstock"))) or 0,
            status=status_from_flag(row),
            province=province_names.get(decode(row.get("ThanhPho")), UNKNOWN_LOCATION),
            latitude=coords[0] if coords else None,
            longitude=coords[1] if coords else None,
            coordinates=Coordinates(lat=coords[0], lng=coords[1]) if coords else None,
        )

    async def fetch_depots(self, filters: Optional[DepotFilters] = None) -> List[Depot]:
        depots = await self.fetch_all()
        return (filters or DepotFilters()).apply(depots)

    async def search_depots(self, term: str) -> List[Depot]:
        return DepotFilters(search=term).apply(await self.fetch_all())

    async def get_provinces(self) -> List[str]:
        provinces = []
        for depot in await self.fetch_all():
            if depot.province and depot.province not in provinces:
                provinces.append(depot.province)
        return provinces

    async def get_statistics(self) -> DepotStatistics:
        depots = await self.fetch_all()
        total_capacity = sum(d.capacity for d in depots)
        total_containers = sum(d.container_count for d in depots)
        return DepotStatistics(
            total_depots=len(depots),
            active_depots=len([d for d in depots if d.status == "active"]),
            total_capacity=total_capacity,
            total_containers=total_containers,
            utilization_rate=round(total_containers / total_capacity * 100) if total_capacity else 0,
            available_space=total_capacity - total_containers,
        )
