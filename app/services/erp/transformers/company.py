import logging
from typing import Any, Dict, List, Optional

from app.schemas.erp import Company, Driver
from app.services.erp.outcomes import ErpRequestError
from app.services.erp.tagged_value import decode, decode_first
from app.services.erp.transformers.base import ErpTransformer, status_from_flag

logger = logging.getLogger(__name__)

# Transport company id columns in GetList_AccountInfo, most specific first
COMPANY_ID_FIELDS = ("DVVanTaiID_CMS", "DonViVanTaiID", "CompanyID", "NhaXeID", "AccountGroupID")


class DriverTransformer(ErpTransformer[Driver]):
    """Drivers of a transport company (GetList_TaiXe_Thuoc_NhaXe)."""

    REQID = "GetList_TaiXe_Thuoc_NhaXe"
    CACHE_KEY = "drivers"

    def transform_row(self, row: Dict[str, Any]) -> Optional[Driver]:
        driver_id = decode(row.get("ID_driver"))
        if not driver_id:
            return None
        return Driver(
            id=driver_id,
            full_name=decode(row.get("TenHT")),
            phone=decode(row.get("SoDT")),
            id_card=decode(row.get("SoCMND")),
            birth_date=decode(row.get("NgaySinh")),
            vehicle_id=decode(row.get("ID_vehicle")),
            vehicle_plate=decode(row.get("BienXe")),
            transport_company_id=decode(row.get("NhaXeID")),
            status=status_from_flag(row),
        )

    async def fetch_drivers(self, company_id: Optional[str] = None) -> List[Driver]:
        payload = {"NhaXeID": str(company_id)} if company_id else None

        async def refresh() -> List[Driver]:
            rows = await self.load_rows(self.REQID, payload, bind_token=payload is not None)
            return self.transform(rows, self.transform_row)

        key = f"{self.CACHE_KEY}:{company_id or 'all'}"
        return await self.cache.get_or_refresh(key, self.ttl_seconds, refresh)


class CompanyTransformer(ErpTransformer[Company]):
    """Resolves the transport company a dashboard user belongs to.

    The account profile (GetList_AccountInfo) is authoritative. When it has no
    row or no company id for the user, the driver list is searched for a driver
    whose ID_driver is the user id and its NhaXeID is used instead.
    """

    REQID = "GetList_AccountInfo"
    CACHE_KEY = "company"

    def __init__(self, *args, drivers: DriverTransformer, **kwargs):
        super().__init__(*args, **kwargs)
        self.drivers = drivers

    def transform_row(self, row: Dict[str, Any]) -> Optional[Company]:
        company_id = decode_first(row, *COMPANY_ID_FIELDS)
        if not company_id:
            return None
        return Company(
            id=company_id,
            code=company_id,
            name=decode_first(row, "CompanyName", "VanTaiTenDayDu") or f"Nhà xe {company_id}",
            invoice_company_id=decode(row.get("MaSoThue")),
            invoice_company_name=decode(row.get("TenCongTyInHoaDon")),
            tax_code=decode_first(row, "TaxCode", "MaSoThue"),
            address=decode_first(row, "Address", "DiaChi"),
            phone=decode_first(row, "Phone", "SoDT"),
            email=decode(row.get("Email")),
            contact_person=decode_first(row, "ContactPerson", "NguoiLienHe"),
            status=status_from_flag(row),
            source="account_info",
            raw_api_data={
                "companyId": company_id,
                "userId": decode_first(row, "UserID", "AccUserKey"),
                "userName": decode_first(row, "UserName", "TenHT"),
            },
        )

    async def fetch_company_by_user_id(self, user_id: str) -> Optional[Company]:
        user_id = str(user_id)

        async def refresh() -> List[Company]:
            company = await self._from_account_info(user_id)
            if company is None:
                logger.info(f"No account profile company for user {user_id}, falling back to driver list")
                company = await self._from_driver_list(user_id)
            return [company] if company else []

        companies = await self.cache.get_or_refresh(f"{self.CACHE_KEY}:{user_id}", self.ttl_seconds, refresh)
        return companies[0] if companies else None

    async def _from_account_info(self, user_id: str) -> Optional[Company]:
        try:
            rows = await self.load_rows(self.REQID, {"AccountID": user_id}, bind_token=True)
        except ErpRequestError as e:
            logger.warning(f"Account profile lookup failed for user {user_id}: {e}")
            return None
        if not rows:
            return None
        company = self.transform_row(rows[0])
        if company is None:
            logger.warning(f"User {user_id} has no company assigned in account profile")
        return company

    async def _from_driver_list(self, user_id: str) -> Optional[Company]:
        rows = await self.load_rows(self.drivers.REQID)
        for row in rows:
            if decode(row.get("ID_driver")) != user_id:
                continue
            company_id = decode(row.get("NhaXeID"))
            if not company_id:
                logger.warning(f"Driver {user_id} has no company assigned")
                return None
            return Company(
                id=company_id,
                code=company_id,
                name=f"Nhà xe {company_id}",
                status=status_from_flag(row),
                source="driver_api",
                raw_api_data={
                    "nhaXeID": company_id,
                    "driverId": user_id,
                    "driverName": decode(row.get("TenHT")),
                    "driverPhone": decode(row.get("SoDT")),
                },
            )
        logger.warning(f"No driver found for user {user_id}")
        return None
