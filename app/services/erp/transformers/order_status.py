from typing import Any, Dict, Optional, Tuple

from app.schemas.erp import OrderStatus
from app.services.erp.tagged_value import decode_first
from app.services.erp.transformers.base import ErpTransformer

DEFAULT_STYLE = ("#6B7280", "📦")

# Checked in order against the lowercased name and code; first match wins
STATUS_STYLES: Tuple[Tuple[Tuple[str, ...], str, str], ...] = (
    (("chờ", "pending"), "#F59E0B", "⏳"),
    (("đã xác nhận", "confirmed"), "#3B82F6", "✅"),
    (("đang", "processing"), "#8B5CF6", "🔄"),
    (("hoàn thành", "completed"), "#10B981", "✔️"),
    (("hủy", "cancel"), "#EF4444", "❌"),
    (("trả", "return"), "#06B6D4", "↩️"),
    (("xuất", "out"), "#14B8A6", "📤"),
    (("nhập", "in"), "#8B5CF6", "📥"),
)


def status_style(name: str, code: str) -> Tuple[str, str]:
    """Return the (color, icon) shown for an order status."""
    name = name.lower()
    code = code.lower()
    for keywords, color, icon in STATUS_STYLES:
        if any(keyword in name or keyword in code for keyword in keywords):
            return color, icon
    return DEFAULT_STYLE


class OrderStatusTransformer(ErpTransformer[OrderStatus]):
    """Order status catalogue (GetList_TrangThaiDonHang)."""

    REQID = "GetList_TrangThaiDonHang"
    CACHE_KEY = "order_statuses"

    def transform_row(self, row: Dict[str, Any]) -> Optional[OrderStatus]:
        code = decode_first(row, "MaTrangThai", "Code")
        status_id = decode_first(row, "ID") or code
        if not status_id:
            return None

        name = decode_first(row, "TenTrangThai", "Name", "Ten")
        color, icon = status_style(name, code)
        return OrderStatus(
            id=status_id,
            code=code,
            name=name,
            description=decode_first(row, "MoTa", "Description"),
            color=color,
            icon=icon,
        )

    async def get_by_id_or_code(self, key: str) -> Optional[OrderStatus]:
        for status in await self.fetch_all():
            if key in (status.id, status.code):
                return status
        return None
