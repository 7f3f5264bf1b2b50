"""
Guarantor Service - guarantors of one agency account and their contracts.

Guarantors are soft deleted: deactivated guarantors disappear from every
listing and cannot back new contracts, but existing links are kept.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from inmodash.data.contracts.models import Contract
from inmodash.data.guarantors.models import ContractGuarantor, Guarantor

logger = logging.getLogger(__name__)


class GuarantorService:

    def __init__(self, db: AsyncSession, user_id: str):
        self.db = db
        self.user_id = user_id

    def _query(self):
        return (
            select(Guarantor)
            .where(Guarantor.user_id == self.user_id, Guarantor.is_active.is_(True))
            .options(selectinload(Guarantor.contract_links))
            .execution_options(populate_existing=True)
        )

    async def list_guarantors(self) -> List[Guarantor]:
        result = await self.db.execute(self._query().order_by(Guarantor.name))
        return list(result.scalars().all())

    async def get_guarantor(self, guarantor_id: str) -> Optional[Guarantor]:
        result = await self.db.execute(self._query().where(Guarantor.id == guarantor_id))
        return result.scalar_one_or_none()

    async def create_guarantor(self, data: Dict[str, Any]) -> Guarantor:
        guarantor = Guarantor(user_id=self.user_id, **data)
        self.db.add(guarantor)
        await self.db.commit()
        return await self.get_guarantor(guarantor.id)

    async def update_guarantor(self, guarantor_id: str, data: Dict[str, Any]) -> Optional[Guarantor]:
        guarantor = await self.get_guarantor(guarantor_id)
        if guarantor is None:
            return None
        for field, value in data.items():
            setattr(guarantor, field, value)
        await self.db.commit()
        return await self.get_guarantor(guarantor.id)

    async def delete_guarantor(self, guarantor_id: str) -> bool:
        guarantor = await self.get_guarantor(guarantor_id)
        if guarantor is None:
            return False
        guarantor.is_active = False
        guarantor.deleted_at = datetime.now(timezone.utc)
        await self.db.commit()
        logger.info(f"Deactivated guarantor {guarantor_id}")
        return True

    # ==========================================================================
    # Contract links
    # ==========================================================================

    async def _contract_exists(self, contract_id: str) -> bool:
        result = await self.db.execute(
            select(Contract.id).where(Contract.id == contract_id, Contract.user_id == self.user_id)
        )
        return result.first() is not None

    async def list_for_contract(self, contract_id: str) -> Optional[List[Guarantor]]:
        """Active guarantors of a contract. None when the contract does not exist."""
        if not await self._contract_exists(contract_id):
            return None
        result = await self.db.execute(
            self._query()
            .join(ContractGuarantor, ContractGuarantor.guarantor_id == Guarantor.id)
            .where(ContractGuarantor.contract_id == contract_id)
            .order_by(Guarantor.name)
        )
        return list(result.scalars().all())

    async def add_to_contract(self, contract_id: str, guarantor_id: str) -> Optional[ContractGuarantor]:
        """
        Link an active guarantor to a contract.

        Returns None when the contract does not exist; raises ValueError for
        an unknown or inactive guarantor and for a duplicate link.
        """
        if not await self._contract_exists(contract_id):
            return None
        if await self.get_guarantor(guarantor_id) is None:
            raise ValueError("Guarantor not found or inactive")

        existing = await self.db.execute(
            select(ContractGuarantor.id).where(
                ContractGuarantor.contract_id == contract_id,
                ContractGuarantor.guarantor_id == guarantor_id,
            )
        )
        if existing.first() is not None:
            raise ValueError("Guarantor is already linked to this contract")

        link = ContractGuarantor(contract_id=contract_id, guarantor_id=guarantor_id)
        self.db.add(link)
        await self.db.commit()
        await self.db.refresh(link)
        return link

    async def remove_from_contract(self, contract_id: str, guarantor_id: str) -> bool:
        result = await self.db.execute(
            select(ContractGuarantor)
            .join(Contract, ContractGuarantor.contract_id == Contract.id)
            .where(
                Contract.user_id == self.user_id,
                ContractGuarantor.contract_id == contract_id,
                ContractGuarantor.guarantor_id == guarantor_id,
            )
        )
        link = result.scalar_one_or_none()
        if link is None:
            return False
        await self.db.delete(link)
        await self.db.commit()
        return True
