from typing import Any, Dict, List, Optional

from app.schemas.erp import CollectionStatistics, ShippingLine, ShippingLineFilters
from app.services.erp.tagged_value import decode, decode_first
from app.services.erp.transformers.base import ErpTransformer, status_from_flag


class ShippingLineTransformer(ErpTransformer[ShippingLine]):
    REQID = "iContainerHub_HangTau"
    CACHE_KEY = "shipping_lines"

    def transform_row(self, row: Dict[str, Any]) -> Optional[ShippingLine]:
        line_id = decode(row.get("ID"))
        if not line_id:
            return None

        code = decode(row.get("MaCongTy")).upper()
        name = decode_first(row, "TenVietTat", "TenCongTy") or code
        return ShippingLine(
            id=line_id,
            code=code,
            name=name,
            full_name=decode(row.get("TenCongTy")) or name,
            scac_code=code,
            phone=decode(row.get("Dienthoai")),
            address=decode(row.get("DiaChi")),
            tax_code=decode(row.get("MaSoThue")),
            logo=decode(row.get("Logo")),
            color_template=decode(row.get("ColorTemplate")),
            status=status_from_flag(row),
            created_at=decode(row.get("colDateAdd")),
            updated_at=decode(row.get("colDateModified")),
        )

    async def fetch_shipping_lines(self, filters: Optional[ShippingLineFilters] = None) -> List[ShippingLine]:
        return (filters or ShippingLineFilters()).apply(await self.fetch_all())

    async def search_shipping_lines(self, term: str) -> List[ShippingLine]:
        return ShippingLineFilters(search=term).apply(await self.fetch_all())

    async def get_countries(self) -> List[str]:
        # Country is not in the upstream listing yet; stays empty until it is
        return sorted({line.country for line in await self.fetch_all() if line.country})

    async def get_statistics(self) -> CollectionStatistics:
        stats = await super().get_statistics()
        for line in await self.fetch_all():
            if line.country:
                stats.by_country[line.country] = stats.by_country.get(line.country, 0) + 1
        return stats
