"""
Rent index client - published ICL / IPC values used to escalate rents.

Values come from the Argly public API:
- ICL (Indice para Contratos de Locacion): GET {base}/icl
    {"data": {"fecha": "03/02/2026", "valor": 30.06}}
- IPC (Indice de Precios al Consumidor): GET {base}/ipc
    {"data": {"anio": 2026, "mes": 1, "indice_ipc": 2.3, ...}}
"""
import calendar
import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, Optional

import httpx

from inmodash.config import settings

logger = logging.getLogger(__name__)

SUPPORTED_INDICES = ("icl", "ipc")


class RentIndexError(Exception):
    """Raised when an index value cannot be fetched or parsed."""


@dataclass
class IndexValue:
    """One published index value."""
    type: str
    value: Decimal
    date: date
    raw_data: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "type": self.type,
            "value": self.value,
            "date": self.date,
            "raw_data": self.raw_data,
        }


@dataclass
class CacheEntry:
    """A cached index value with expiration."""
    value: IndexValue
    expires_at: datetime


class RentIndexClient:
    """
    Async client for the rent index API with a small in-memory TTL cache.

    Usage:
        client = RentIndexClient()
        icl = await client.get_index("icl")
        result = client.calculate_updated_amount(Decimal("100000"), Decimal("25.1"), icl.value)
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        ttl_seconds: Optional[int] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = (base_url or settings.RENT_INDEX_API_URL).rstrip("/")
        self._ttl = timedelta(seconds=ttl_seconds if ttl_seconds is not None else settings.RENT_INDEX_CACHE_TTL_SECONDS)
        self._timeout = timeout if timeout is not None else settings.RENT_INDEX_TIMEOUT_SECONDS
        self._transport = transport
        self._cache: Dict[str, CacheEntry] = {}

    # ==========================================================================
    # Cache
    # ==========================================================================

    def _cached(self, key: str) -> Optional[IndexValue]:
        entry = self._cache.get(key)
        if entry is None:
            return None
        if datetime.utcnow() > entry.expires_at:
            del self._cache[key]
            return None
        return entry.value

    def _store(self, key: str, value: IndexValue) -> None:
        self._cache[key] = CacheEntry(value=value, expires_at=datetime.utcnow() + self._ttl)

    def clear_cache(self) -> None:
        self._cache.clear()

    # ==========================================================================
    # Fetching
    # ==========================================================================

    async def _fetch(self, path: str) -> Dict[str, Any]:
        url = f"{self.base_url}/{path}"
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                response = await client.get(url, headers={"Accept": "application/json"})
        except httpx.HTTPError as e:
            logger.error(f"Error fetching {path.upper()} index: {e}")
            raise RentIndexError(f"Error fetching {path.upper()}: {e}") from e

        if response.status_code != 200:
            logger.error(f"Rent index API returned {response.status_code} for {path.upper()}")
            raise RentIndexError(f"Error fetching {path.upper()}: {response.status_code}")

        payload = response.json()
        data = payload.get("data") if isinstance(payload, dict) else None
        if not isinstance(data, dict):
            raise RentIndexError(f"Unexpected {path.upper()} payload")
        return data

    async def get_icl(self) -> IndexValue:
        """Latest ICL value."""
        cached = self._cached("icl")
        if cached:
            return cached

        data = await self._fetch("icl")
        try:
            day, month, year = (int(part) for part in str(data["fecha"]).split("/"))
            result = IndexValue(
                type="icl",
                value=Decimal(str(data["valor"])),
                date=date(year, month, day),
                raw_data=data,
            )
        except (KeyError, ValueError, ArithmeticError) as e:
            raise RentIndexError(f"Malformed ICL payload: {data}") from e

        self._store("icl", result)
        return result

    async def get_ipc(self) -> IndexValue:
        """Latest IPC value, dated the last day of the reported month."""
        cached = self._cached("ipc")
        if cached:
            return cached

        data = await self._fetch("ipc")
        try:
            year, month = int(data["anio"]), int(data["mes"])
            result = IndexValue(
                type="ipc",
                value=Decimal(str(data["indice_ipc"])),
                date=date(year, month, calendar.monthrange(year, month)[1]),
                raw_data=data,
            )
        except (KeyError, ValueError, ArithmeticError) as e:
            raise RentIndexError(f"Malformed IPC payload: {data}") from e

        self._store("ipc", result)
        return result

    async def get_index(self, index_type: str) -> IndexValue:
        """Latest value of the given index ("icl" or "ipc")."""
        if index_type == "icl":
            return await self.get_icl()
        if index_type == "ipc":
            return await self.get_ipc()
        raise ValueError(f"Unsupported index type: {index_type}")

    # ==========================================================================
    # Calculations
    # ==========================================================================

    @staticmethod
    def calculate_update_coefficient(initial_value: Decimal, current_value: Decimal) -> Decimal:
        """Coefficient between two index values (1.15 = 15% increase)."""
        initial_value = Decimal(str(initial_value))
        if initial_value <= 0:
            raise ValueError("Initial index value must be greater than 0")
        return Decimal(str(current_value)) / initial_value

    @classmethod
    def calculate_updated_amount(
        cls,
        base_amount: Decimal,
        initial_index_value: Decimal,
        current_index_value: Decimal,
    ) -> dict:
        """
        Escalate a base amount by the index variation.

        The new amount is rounded to whole currency units.
        """
        coefficient = cls.calculate_update_coefficient(initial_index_value, current_index_value)
        new_amount = (Decimal(str(base_amount)) * coefficient).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
        percentage_increase = (coefficient - 1) * 100
        return {
            "new_amount": new_amount,
            "coefficient": coefficient,
            "percentage_increase": percentage_increase,
        }


_client: Optional[RentIndexClient] = None


def get_rent_index_client() -> RentIndexClient:
    """Shared client so the cache survives across requests and jobs."""
    global _client
    if _client is None:
        _client = RentIndexClient()
    return _client
