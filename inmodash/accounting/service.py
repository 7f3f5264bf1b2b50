"""Accounting Service - the agency's own ledger (commissions, expenses, adjustments)."""
import logging
from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from inmodash.accounting.models import AccountingEntry
from inmodash.services.distribution import ZERO, normalize_period, to_money

logger = logging.getLogger(__name__)

ENTRY_TYPES = ("commission", "commission_service", "expense", "income_other", "adjustment")


class AccountingService:
    """Ledger entries of one agency account."""

    def __init__(self, db: AsyncSession, user_id: str):
        self.db = db
        self.user_id = user_id

    def _query(self):
        return (
            select(AccountingEntry)
            .where(AccountingEntry.user_id == self.user_id)
            .options(selectinload(AccountingEntry.owner))
        )

    async def create_entry(self, data: Dict[str, Any], commit: bool = True) -> AccountingEntry:
        if data["type"] not in ENTRY_TYPES:
            raise ValueError(f"Unknown accounting entry type: {data['type']}")

        entry = AccountingEntry(
            user_id=self.user_id,
            type=data["type"],
            description=data["description"],
            amount=to_money(data["amount"]),
            entry_date=data.get("entry_date") or date.today(),
            period=normalize_period(data.get("period") or data.get("entry_date") or date.today()),
            settlement_id=data.get("settlement_id"),
            owner_id=data.get("owner_id"),
            contract_id=data.get("contract_id"),
            obligation_id=data.get("obligation_id"),
            extra_data=data.get("extra_data"),
        )
        self.db.add(entry)
        if commit:
            await self.db.commit()
            await self.db.refresh(entry)
        return entry

    async def list_entries(
        self,
        entry_type: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        owner_id: Optional[str] = None,
        settlement_id: Optional[str] = None,
    ) -> List[AccountingEntry]:
        query = self._query()
        if entry_type:
            query = query.where(AccountingEntry.type == entry_type)
        if start_date:
            query = query.where(AccountingEntry.entry_date >= start_date)
        if end_date:
            query = query.where(AccountingEntry.entry_date <= end_date)
        if owner_id:
            query = query.where(AccountingEntry.owner_id == owner_id)
        if settlement_id:
            query = query.where(AccountingEntry.settlement_id == settlement_id)

        result = await self.db.execute(query.order_by(AccountingEntry.entry_date.desc()))
        return list(result.scalars().all())

    async def get_entry(self, entry_id: str) -> Optional[AccountingEntry]:
        result = await self.db.execute(self._query().where(AccountingEntry.id == entry_id))
        return result.scalar_one_or_none()

    async def delete_entry(self, entry_id: str) -> bool:
        entry = await self.get_entry(entry_id)
        if entry is None:
            return False
        await self.db.delete(entry)
        await self.db.commit()
        return True

    async def get_commissions_summary(self, start_date: date, end_date: date) -> Dict[str, Any]:
        entries = await self.list_entries(entry_type="commission", start_date=start_date, end_date=end_date)
        total = sum((to_money(e.amount) for e in entries), ZERO)
        return {"entries": entries, "total_commissions": total, "count": len(entries)}

    async def get_totals_by_type(self, start_date: date, end_date: date) -> List[Dict[str, Any]]:
        result = await self.db.execute(
            select(
                AccountingEntry.type,
                func.sum(AccountingEntry.amount),
                func.count(AccountingEntry.id),
            )
            .where(
                AccountingEntry.user_id == self.user_id,
                AccountingEntry.entry_date >= start_date,
                AccountingEntry.entry_date <= end_date,
            )
            .group_by(AccountingEntry.type)
            .order_by(AccountingEntry.type)
        )
        return [
            {"type": entry_type, "total": to_money(total or Decimal("0")), "count": count}
            for entry_type, total, count in result.all()
        ]

    # ==========================================================================
    # Settlement commissions
    # ==========================================================================

    async def register_settlement_commission(self, settlement, owner_name: str) -> AccountingEntry:
        """Book the commission retained when a settlement is paid out. Not committed."""
        period_label = settlement.period.strftime("%m/%Y")
        entry = await self.create_entry(
            {
                "type": "commission",
                "description": f"Commission on settlement of {owner_name} - {period_label}",
                "amount": settlement.commission_amount,
                "entry_date": date.today(),
                "period": settlement.period,
                "settlement_id": settlement.id,
                "owner_id": settlement.owner_id,
                "extra_data": {"owner_name": owner_name, "period": period_label},
            },
            commit=False,
        )
        logger.info(f"Registered commission {settlement.commission_amount} for settlement {settlement.id}")
        return entry

    async def remove_settlement_commission(self, settlement_id: str) -> int:
        """Drop commission entries booked for a settlement. Not committed."""
        result = await self.db.execute(
            delete(AccountingEntry).where(
                AccountingEntry.user_id == self.user_id,
                AccountingEntry.settlement_id == settlement_id,
                AccountingEntry.type == "commission",
            )
        )
        return result.rowcount or 0
