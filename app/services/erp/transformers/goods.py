from typing import Any, Dict, List, Optional

from app.schemas.erp import Goods, GoodsFilters
from app.services.erp.tagged_value import decode_first, is_true_flag
from app.services.erp.transformers.base import ErpTransformer


class GoodsTransformer(ErpTransformer[Goods]):
    """Goods categories (iContainerHub_HangHoa). Column names vary between ERP versions."""

    REQID = "iContainerHub_HangHoa"
    CACHE_KEY = "goods"

    def transform_row(self, row: Dict[str, Any]) -> Optional[Goods]:
        goods_id = decode_first(row, "ID", "id")
        name = decode_first(row, "Tenhanghoa", "TenGoi", "Ten", "Name")
        code = decode_first(row, "MaHangHoa", "Ma", "Code")
        record_id = goods_id or code or name
        if not record_id:
            return None

        return Goods(
            id=record_id,
            name=name or f"Hàng hóa {goods_id}",
            code=code,
            description=decode_first(row, "MoTa", "GhiChu"),
            status="active" if is_true_flag(decode_first(row, "Active", "TrangThai")) else "inactive",
            created_at=decode_first(row, "colDateAdd", "NgayTao"),
            updated_at=decode_first(row, "colDateModified", "NgayCapNhat"),
        )

    async def fetch_goods(self, filters: Optional[GoodsFilters] = None) -> List[Goods]:
        return (filters or GoodsFilters()).apply(await self.fetch_all())

    async def search_goods(self, term: str) -> List[Goods]:
        return GoodsFilters(search=term).apply(await self.fetch_all())
