from app.services.erp.transformers.base import ErpTransformer
from app.services.erp.transformers.company import CompanyTransformer, DriverTransformer
from app.services.erp.transformers.container import ContainerTransformer, map_container_size, map_container_type
from app.services.erp.transformers.container_type import ContainerTypeTransformer
from app.services.erp.transformers.depot import DepotTransformer
from app.services.erp.transformers.goods import GoodsTransformer
from app.services.erp.transformers.location import LocationTransformer
from app.services.erp.transformers.order_status import OrderStatusTransformer
from app.services.erp.transformers.shipping_line import ShippingLineTransformer
from app.services.erp.transformers.vehicle import drivers_for_plate, group_vehicles

__all__ = [
    "ErpTransformer",
    "CompanyTransformer",
    "ContainerTransformer",
    "ContainerTypeTransformer",
    "DepotTransformer",
    "DriverTransformer",
    "GoodsTransformer",
    "LocationTransformer",
    "OrderStatusTransformer",
    "ShippingLineTransformer",
    "map_container_size",
    "map_container_type",
    "drivers_for_plate",
    "group_vehicles",
]
