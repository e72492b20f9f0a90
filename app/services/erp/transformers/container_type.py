from typing import Any, Dict, List, Optional

from app.schemas.erp import ContainerType, ContainerTypeFilters
from app.services.erp.cache import CollectionCache
from app.services.erp.dispatcher import RequestDispatcher
from app.services.erp.tagged_value import decode
from app.services.erp.transformers.base import ErpTransformer, status_from_flag


class ContainerTypeTransformer(ErpTransformer[ContainerType]):
    REQID = "iContainerHub_LoaiCont"
    CACHE_KEY = "container_types"

    def __init__(
        self,
        dispatcher: RequestDispatcher,
        cache: CollectionCache,
        ttl_seconds: float,
        asset_base_url: str = "",
    ):
        super().__init__(dispatcher, cache, ttl_seconds)
        self.asset_base_url = asset_base_url.rstrip("/")

    def transform_row(self, row: Dict[str, Any]) -> Optional[ContainerType]:
        type_id = decode(row.get("ID"))
        if not type_id:
            return None

        code = decode(row.get("ContainerType"))  # GP, RF, UT...
        size = decode(row.get("ContainerSize"))  # 20', 40', 45'
        iso_code = decode(row.get("ISO6346_1995typegroup"))
        description = decode(row.get("TypegroupDescription"))
        image_path = decode(row.get("UrlHinhAnh"))

        return ContainerType(
            id=type_id,
            name=decode(row.get("TenGoi")) or f"{size} {code}".strip(),
            code=code,
            iso_code=iso_code,
            container_size=size,
            image_url=f"{self.asset_base_url}{image_path}" if image_path else "",
            description=f"{description} - {iso_code} ({size})" if description else "",
            status=status_from_flag(row),
            created_at=decode(row.get("colDateAdd")),
            updated_at=decode(row.get("colDateModified")),
        )

    async def fetch_container_types(self, filters: Optional[ContainerTypeFilters] = None) -> List[ContainerType]:
        return (filters or ContainerTypeFilters()).apply(await self.fetch_all())

    async def search_container_types(self, term: str) -> List[ContainerType]:
        return ContainerTypeFilters(search=term).apply(await self.fetch_all())
