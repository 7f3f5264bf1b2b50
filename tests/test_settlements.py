"""
Tests for owner settlements.

Covers the pure aggregation of paid obligations into per-owner totals and
the settle / reopen lifecycle with its accounting side effects.
"""

import pytest
from datetime import date
from decimal import Decimal
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

from inmodash.accounting.models import AccountingEntry
from inmodash.data.settlements.models import Settlement
from inmodash.services.settlements import SettlementService, aggregate_settlements


USER_ID = "user_1"
MARCH = date(2026, 3, 1)


def owned_by(owner_id):
    return SimpleNamespace(apartment=SimpleNamespace(owner_id=owner_id, building=None))


def make_obligation(owner_id="owner_1", **overrides):
    fields = dict(
        id="obl_1",
        type="rent",
        amount=Decimal("1000.00"),
        paid_amount=Decimal("1000.00"),
        owner_impact=Decimal("900.00"),
        agency_impact=Decimal("100.00"),
        contract=owned_by(owner_id) if owner_id else None,
        apartment=None,
    )
    fields.update(overrides)
    return SimpleNamespace(**fields)


def rows(items):
    result = MagicMock()
    result.scalars.return_value.all.return_value = list(items)
    return result


def make_settlement(**overrides):
    fields = dict(
        id="stl_1",
        owner_id="owner_1",
        owner=SimpleNamespace(name="Ana Perez"),
        period=MARCH,
        status="pending",
        commission_amount=Decimal("100.00"),
        owner_amount=Decimal("900.00"),
        settled_at=None,
        payment_method=None,
        reference=None,
        notes=None,
    )
    fields.update(overrides)
    return SimpleNamespace(**fields)


@pytest.fixture
def service(mock_db):
    return SettlementService(mock_db, USER_ID)


# =============================================================================
# Aggregation
# =============================================================================

class TestAggregateSettlements:

    def test_fully_paid_rent(self):
        totals = aggregate_settlements([make_obligation()])["owner_1"]

        assert totals.total_collected == Decimal("1000.00")
        assert totals.commission_amount == Decimal("100.00")
        assert totals.owner_amount == Decimal("900.00")

    def test_partially_paid_rent_is_proportional(self):
        totals = aggregate_settlements([make_obligation(paid_amount=Decimal("500.00"))])["owner_1"]

        assert totals.total_collected == Decimal("500.00")
        assert totals.commission_amount == Decimal("50.00")
        assert totals.owner_amount == Decimal("450.00")

    def test_owner_charges_become_deductions(self):
        tax = make_obligation(
            id="obl_tax", type="tax", amount=Decimal("300.00"), paid_amount=Decimal("300.00"),
            owner_impact=Decimal("-300.00"), agency_impact=Decimal("0.00"),
        )
        totals = aggregate_settlements([make_obligation(), tax])["owner_1"]

        assert totals.deductions == Decimal("300.00")
        assert totals.owner_amount == Decimal("600.00")

    def test_positive_impacts_become_credits(self):
        credit = make_obligation(
            id="obl_credit", type="debt", amount=Decimal("200.00"), paid_amount=Decimal("200.00"),
            owner_impact=Decimal("200.00"), agency_impact=Decimal("0.00"),
        )
        totals = aggregate_settlements([credit])["owner_1"]

        assert totals.credits == Decimal("200.00")
        assert totals.total_collected == Decimal("0.00")
        assert totals.owner_amount == Decimal("200.00")

    def test_unpaid_and_ownerless_obligations_are_ignored(self):
        unpaid = make_obligation(paid_amount=Decimal("0.00"))
        orphan = make_obligation(owner_id=None)
        assert aggregate_settlements([unpaid, orphan]) == {}

    def test_groups_by_owner(self):
        totals = aggregate_settlements([
            make_obligation(id="a"),
            make_obligation(id="b", owner_id="owner_2"),
            make_obligation(id="c"),
        ])

        assert set(totals) == {"owner_1", "owner_2"}
        assert totals["owner_1"].total_collected == Decimal("2000.00")
        assert totals["owner_2"].commission_amount == Decimal("100.00")

    def test_expenses_are_not_settled(self):
        expenses = make_obligation(
            type="expenses", owner_impact=Decimal("0.00"), agency_impact=Decimal("0.00"),
        )
        totals = aggregate_settlements([expenses])["owner_1"]
        assert totals.owner_amount == Decimal("0.00")


# =============================================================================
# Lifecycle
# =============================================================================

class TestMarkSettled:

    @pytest.mark.asyncio
    async def test_books_commission(self, service, mock_db):
        settlement = make_settlement()
        with patch.object(service, "get_settlement", AsyncMock(return_value=settlement)):
            result = await service.mark_settled("stl_1", {"payment_method": "transfer", "reference": "TRX-1"})

        assert result is settlement
        assert settlement.status == "settled"
        assert settlement.settled_at is not None
        assert settlement.payment_method == "transfer"

        entry = mock_db.add.call_args.args[0]
        assert isinstance(entry, AccountingEntry)
        assert entry.type == "commission"
        assert entry.amount == Decimal("100.00")
        assert entry.settlement_id == "stl_1"
        assert entry.description == "Commission on settlement of Ana Perez - 03/2026"
        mock_db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_no_entry_without_commission(self, service, mock_db):
        settlement = make_settlement(commission_amount=Decimal("0.00"))
        with patch.object(service, "get_settlement", AsyncMock(return_value=settlement)):
            await service.mark_settled("stl_1", {})

        mock_db.add.assert_not_called()
        assert settlement.status == "settled"

    @pytest.mark.asyncio
    async def test_cannot_settle_twice(self, service):
        with patch.object(service, "get_settlement", AsyncMock(return_value=make_settlement(status="settled"))):
            with pytest.raises(ValueError, match="already settled"):
                await service.mark_settled("stl_1", {})

    @pytest.mark.asyncio
    async def test_missing_settlement(self, service):
        with patch.object(service, "get_settlement", AsyncMock(return_value=None)):
            assert await service.mark_settled("nope", {}) is None


class TestMarkPending:

    @pytest.mark.asyncio
    async def test_reopens_and_removes_commission(self, service, mock_db):
        settlement = make_settlement(status="settled", payment_method="cash", reference="R1")
        mock_db.execute.return_value = MagicMock(rowcount=1)

        with patch.object(service, "get_settlement", AsyncMock(return_value=settlement)):
            await service.mark_pending("stl_1")

        assert settlement.status == "pending"
        assert settlement.settled_at is None
        assert settlement.payment_method is None
        assert settlement.reference is None
        mock_db.execute.assert_awaited_once()
        mock_db.commit.assert_awaited_once()


class TestUpsertSettlement:

    @pytest.mark.asyncio
    async def test_settled_statement_is_locked(self, service, mock_db):
        owner_row = MagicMock()
        owner_row.first.return_value = ("owner_1",)
        mock_db.execute.return_value = owner_row

        with patch.object(service, "_get_for_period", AsyncMock(return_value=make_settlement(status="settled"))):
            with pytest.raises(ValueError, match="already settled"):
                await service.upsert_settlement({"owner_id": "owner_1", "period": "2026-03"})

    @pytest.mark.asyncio
    async def test_unknown_owner(self, service, mock_db):
        owner_row = MagicMock()
        owner_row.first.return_value = None
        mock_db.execute.return_value = owner_row

        with pytest.raises(ValueError, match="Owner not found"):
            await service.upsert_settlement({"owner_id": "ghost", "period": "2026-03"})


class TestCalculateForPeriod:

    @pytest.mark.asyncio
    async def test_skips_settled_and_creates_missing(self, service, mock_db):
        obligations = MagicMock()
        obligations.scalars.return_value.all.return_value = [
            make_obligation(id="a", owner_id="owner_a"),
            make_obligation(id="b", owner_id="owner_b", paid_amount=Decimal("500.00")),
        ]
        mock_db.execute.side_effect = [obligations, rows([])]

        settled = make_settlement(owner_id="owner_a", status="settled")
        with patch.object(service, "_get_for_period", AsyncMock(side_effect=[settled, None])):
            result = await service.calculate_for_period(date(2026, 3, 20))

        assert result["period"] == "2026-03"
        assert result["skipped_settled_owner_ids"] == ["owner_a"]
        assert len(result["settlements"]) == 1

        created = mock_db.add.call_args.args[0]
        assert isinstance(created, Settlement)
        assert created.owner_id == "owner_b"
        assert created.period == MARCH
        assert created.total_collected == Decimal("500.00")
        assert created.commission_amount == Decimal("50.00")
        assert created.owner_amount == Decimal("450.00")
        mock_db.refresh.assert_awaited_once_with(created)

    @pytest.mark.asyncio
    async def test_refreshes_pending_statement(self, service, mock_db):
        obligations = MagicMock()
        obligations.scalars.return_value.all.return_value = [make_obligation()]
        mock_db.execute.side_effect = [obligations, rows([])]
        existing = make_settlement(total_collected=Decimal("0.00"), owner_amount=Decimal("0.00"))

        with patch.object(service, "_get_for_period", AsyncMock(return_value=existing)):
            result = await service.calculate_for_period(MARCH)

        assert result["settlements"] == [existing]
        assert existing.total_collected == Decimal("1000.00")
        assert existing.owner_amount == Decimal("900.00")
        mock_db.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_empties_pending_statement_without_paid_obligations(self, service, mock_db):
        stale = make_settlement(
            owner_id="owner_gone",
            total_collected=Decimal("1000.00"),
            deductions=Decimal("0.00"),
            credits=Decimal("0.00"),
        )
        mock_db.execute.side_effect = [rows([]), rows([stale])]

        result = await service.calculate_for_period(MARCH)

        assert result["settlements"] == [stale]
        assert stale.total_collected == Decimal("0")
        assert stale.commission_amount == Decimal("0")
        assert stale.owner_amount == Decimal("0")
        mock_db.refresh.assert_awaited_once_with(stale)


class TestDeleteSettlement:

    @pytest.mark.asyncio
    async def test_pending_statement(self, service, mock_db):
        settlement = make_settlement()
        with patch.object(service, "get_settlement", AsyncMock(return_value=settlement)):
            assert await service.delete_settlement("stl_1") is True

        mock_db.execute.assert_not_awaited()
        mock_db.delete.assert_awaited_once_with(settlement)
        mock_db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_settled_statement_drops_its_commission(self, service, mock_db):
        settlement = make_settlement(status="settled")
        mock_db.execute.return_value = MagicMock(rowcount=1)

        with patch.object(service, "get_settlement", AsyncMock(return_value=settlement)):
            assert await service.delete_settlement("stl_1") is True

        statement = mock_db.execute.await_args.args[0]
        assert statement.table.name == "accounting_entries"
        mock_db.delete.assert_awaited_once_with(settlement)

    @pytest.mark.asyncio
    async def test_missing_settlement(self, service, mock_db):
        with patch.object(service, "get_settlement", AsyncMock(return_value=None)):
            assert await service.delete_settlement("nope") is False
        mock_db.delete.assert_not_called()
