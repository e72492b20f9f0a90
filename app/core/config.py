from functools import lru_cache
from typing import List, Optional

from pydantic import Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


def _normalize_origin(origin: str) -> str:
    origin = origin.strip().rstrip("/")
    scheme, sep, rest = origin.partition("://")
    return f"{scheme.lower()}{sep}{rest}" if sep else origin


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        populate_by_name=True,
        extra="ignore",
    )

    debug: bool = False
    project_name: str = "Container Hub API"
    environment: str = "development"
    log_level: str = "INFO"

    # Comma-separated dashboard origins
    cors_origins_raw: Optional[str] = Field(default=None, alias="CORS_ORIGINS")

    @computed_field
    @property
    def backend_cors_origins(self) -> List[str]:
        if not self.cors_origins_raw:
            return []
        return [_normalize_origin(origin) for origin in self.cors_origins_raw.split(",") if origin.strip()]

    # Upstream ERP API (eDepot)
    erp_api_url: str = Field(
        default="http://apiedepottest.gsotgroup.vn",
        alias="EXTERNAL_API_URL",
    )
    erp_app_version: str = "2023"  # Sent as data.appversion on every call
    # Credentialed token endpoint (/api/data/util/gettoken). When both are set gate-out tokens come from it
    erp_account_id: Optional[str] = None
    erp_password: Optional[str] = None
    erp_token_timeout_seconds: float = 10.0
    erp_request_timeout_seconds: float = 30.0

    # Collection cache TTLs
    depot_cache_ttl_seconds: int = 300
    shipping_line_cache_ttl_seconds: int = 300
    goods_cache_ttl_seconds: int = 300
    container_type_cache_ttl_seconds: int = 300
    company_cache_ttl_seconds: int = 600
    location_cache_ttl_seconds: int = 600
    driver_cache_ttl_seconds: int = 300
    container_cache_ttl_seconds: int = 120
    registered_order_cache_ttl_seconds: int = 60
    order_status_cache_ttl_seconds: int = 300

    # CMS serving depot logos and container type images
    cms_asset_base_url: str = "https://cms.ltacv.com"

    # Local gate-out registrations. Unset keeps them in process memory.
    registration_store_path: Optional[str] = None

    @property
    def has_privileged_credentials(self) -> bool:
        return bool(self.erp_account_id and self.erp_password)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
