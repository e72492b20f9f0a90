"""Composition of the ERP integration layer behind one downstream contract."""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple

import httpx

from app.core.config import Settings
from app.schemas.erp import (
    Company,
    Container,
    ContainerFilters,
    ContainerType,
    ContainerTypeFilters,
    Depot,
    DepotFilters,
    Driver,
    GateOutResponse,
    Goods,
    GoodsFilters,
    Location,
    OrderStatus,
    RegisteredContainer,
    RegisteredOrder,
    ShippingLine,
    ShippingLineFilters,
    Vehicle,
    VehicleDriver,
)
from app.services.erp.cache import CollectionCache
from app.services.erp.dispatcher import RequestDispatcher
from app.services.erp.gate_out import GateOutFlow
from app.services.erp.registration_store import (
    InMemoryRegistrationStore,
    JsonFileRegistrationStore,
    RegistrationStore,
)
from app.services.erp.token_broker import TokenBroker
from app.services.erp.transformers import (
    CompanyTransformer,
    ContainerTransformer,
    ContainerTypeTransformer,
    DepotTransformer,
    DriverTransformer,
    ErpTransformer,
    GoodsTransformer,
    LocationTransformer,
    OrderStatusTransformer,
    ShippingLineTransformer,
    drivers_for_plate,
    group_vehicles,
)

logger = logging.getLogger(__name__)


class ErpGateway:
    """Everything the HTTP layer needs from the ERP.

    Listing methods degrade to stale or empty data; gate-out reports every
    failure in its response. Nothing here raises for upstream conditions.
    """

    def __init__(
        self,
        token_broker: TokenBroker,
        dispatcher: RequestDispatcher,
        cache: CollectionCache,
        store: RegistrationStore,
        locations: LocationTransformer,
        depots: DepotTransformer,
        containers: ContainerTransformer,
        shipping_lines: ShippingLineTransformer,
        goods: GoodsTransformer,
        container_types: ContainerTypeTransformer,
        drivers: DriverTransformer,
        companies: CompanyTransformer,
        order_statuses: OrderStatusTransformer,
        privileged_gate_out: bool = False,
    ):
        self.token_broker = token_broker
        self.dispatcher = dispatcher
        self.cache = cache
        self.store = store
        self.locations = locations
        self.depots = depots
        self.containers = containers
        self.shipping_lines = shipping_lines
        self.goods = goods
        self.container_types = container_types
        self.drivers = drivers
        self.companies = companies
        self.order_statuses = order_statuses
        self.gate_out = GateOutFlow(
            dispatcher,
            store,
            on_success=containers.clear_container_caches,
            privileged=privileged_gate_out,
        )

    @property
    def collections(self) -> Dict[str, ErpTransformer]:
        return {
            "locations": self.locations,
            "depots": self.depots,
            "containers": self.containers,
            "shipping_lines": self.shipping_lines,
            "goods": self.goods,
            "container_types": self.container_types,
            "order_statuses": self.order_statuses,
        }

    async def fetch_depots(self, filters: Optional[DepotFilters] = None) -> List[Depot]:
        return await self.depots.fetch_depots(filters)

    async def fetch_containers(self, filters: Optional[ContainerFilters] = None) -> List[Container]:
        return await self.containers.fetch_containers(filters)

    async def fetch_shipping_lines(self, filters: Optional[ShippingLineFilters] = None) -> List[ShippingLine]:
        return await self.shipping_lines.fetch_shipping_lines(filters)

    async def fetch_goods(self, filters: Optional[GoodsFilters] = None) -> List[Goods]:
        return await self.goods.fetch_goods(filters)

    async def fetch_container_types(self, filters: Optional[ContainerTypeFilters] = None) -> List[ContainerType]:
        return await self.container_types.fetch_container_types(filters)

    async def fetch_company_by_user_id(self, user_id: str) -> Optional[Company]:
        return await self.companies.fetch_company_by_user_id(user_id)

    async def fetch_locations(self) -> List[Location]:
        return await self.locations.fetch_all()

    async def get_location(self, code: str) -> Location:
        return Location(code=code, name=await self.locations.get_location_name(code))

    async def fetch_drivers(self, company_id: Optional[str] = None) -> List[Driver]:
        return await self.drivers.fetch_drivers(company_id)

    async def fetch_vehicles(self, company_id: str) -> List[Vehicle]:
        return group_vehicles(await self.drivers.fetch_drivers(company_id))

    async def fetch_vehicle_drivers(self, vehicle_plate: str, company_id: str) -> List[VehicleDriver]:
        return drivers_for_plate(await self.drivers.fetch_drivers(company_id), vehicle_plate)

    async def fetch_order_statuses(self) -> List[OrderStatus]:
        return await self.order_statuses.fetch_all()

    async def get_order_status(self, id_or_code: str) -> Optional[OrderStatus]:
        return await self.order_statuses.get_by_id_or_code(id_or_code)

    async def fetch_registered_orders(self, company_id: Optional[str] = None) -> List[RegisteredOrder]:
        return await self.containers.fetch_registered_orders(company_id)

    async def create_gate_out(self, payload: Dict[str, Any]) -> GateOutResponse:
        return await self.gate_out.create_gate_out(payload)

    async def list_registered_containers(self, user_id: int) -> List[RegisteredContainer]:
        return await asyncio.to_thread(self.store.list_by_user, user_id)

    @property
    def keyed_collections(self) -> Dict[str, Tuple[str, Callable[[Optional[str]], Awaitable[Any]]]]:
        """Collections cached once per company or user, with the fetch that rebuilds one entry."""
        return {
            "drivers": (f"{self.drivers.CACHE_KEY}:", self.drivers.fetch_drivers),
            "company": (f"{self.companies.CACHE_KEY}:", self.companies.fetch_company_by_user_id),
            "registered_orders": (self.containers.REGISTERED_CACHE_PREFIX, self.containers.fetch_registered_orders),
        }

    async def refresh_cache(self, entity_name: Optional[str] = None) -> Dict[str, int]:
        """Drop cached data and refetch it. Returns item counts per refreshed collection.

        Without an entity name every cached collection and every per-user or
        per-company entry is dropped, and the shared collections are refetched.
        A per-company or per-user collection refetches the entries it had
        cached. An unknown name refreshes nothing.
        """
        if entity_name in self.keyed_collections:
            counts = {entity_name: await self._refresh_keyed(*self.keyed_collections[entity_name])}
            logger.info(f"Refreshed collections: {counts}")
            return counts

        if entity_name is None:
            self.cache.invalidate()
            targets = self.collections
        elif entity_name in self.collections:
            targets = {entity_name: self.collections[entity_name]}
        else:
            logger.warning(f"Cache refresh requested for unknown collection: {entity_name}")
            return {}

        counts = {}
        for name, transformer in targets.items():
            counts[name] = len(await transformer.refresh())
        logger.info(f"Refreshed collections: {counts}")
        return counts

    async def _refresh_keyed(self, prefix: str, fetch: Callable[[Optional[str]], Awaitable[Any]]) -> int:
        suffixes = [key[len(prefix):] for key in self.cache.keys(prefix)]
        self.cache.invalidate_prefix(prefix)
        count = 0
        for suffix in suffixes:
            result = await fetch(None if suffix == "all" else suffix)
            if isinstance(result, list):
                count += len(result)
            elif result is not None:
                count += 1
        return count

    def cache_stats(self) -> List[Dict[str, Any]]:
        return self.cache.stats()


def build_registration_store(settings: Settings) -> RegistrationStore:
    if settings.registration_store_path:
        return JsonFileRegistrationStore(settings.registration_store_path)
    return InMemoryRegistrationStore()


def build_gateway(
    settings: Settings,
    http_client: httpx.AsyncClient,
    cache: Optional[CollectionCache] = None,
    store: Optional[RegistrationStore] = None,
) -> ErpGateway:
    broker = TokenBroker(
        http_client,
        settings.erp_api_url,
        app_version=settings.erp_app_version,
        timeout=settings.erp_token_timeout_seconds,
        account_id=settings.erp_account_id,
        password=settings.erp_password,
    )
    dispatcher = RequestDispatcher(
        http_client,
        broker,
        settings.erp_api_url,
        timeout=settings.erp_request_timeout_seconds,
    )
    cache = cache or CollectionCache()
    locations = LocationTransformer(dispatcher, cache, settings.location_cache_ttl_seconds)
    drivers = DriverTransformer(dispatcher, cache, settings.driver_cache_ttl_seconds)

    return ErpGateway(
        token_broker=broker,
        dispatcher=dispatcher,
        cache=cache,
        store=store or build_registration_store(settings),
        locations=locations,
        depots=DepotTransformer(
            dispatcher,
            cache,
            settings.depot_cache_ttl_seconds,
            locations,
            asset_base_url=settings.cms_asset_base_url,
        ),
        containers=ContainerTransformer(
            dispatcher,
            cache,
            settings.container_cache_ttl_seconds,
            registered_ttl_seconds=settings.registered_order_cache_ttl_seconds,
        ),
        shipping_lines=ShippingLineTransformer(dispatcher, cache, settings.shipping_line_cache_ttl_seconds),
        goods=GoodsTransformer(dispatcher, cache, settings.goods_cache_ttl_seconds),
        container_types=ContainerTypeTransformer(
            dispatcher,
            cache,
            settings.container_type_cache_ttl_seconds,
            asset_base_url=settings.cms_asset_base_url,
        ),
        drivers=drivers,
        companies=CompanyTransformer(dispatcher, cache, settings.company_cache_ttl_seconds, drivers=drivers),
        order_statuses=OrderStatusTransformer(dispatcher, cache, settings.order_status_cache_ttl_seconds),
        privileged_gate_out=settings.has_privileged_credentials,
    )
