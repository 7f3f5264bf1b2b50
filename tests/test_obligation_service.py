"""
Tests for ObligationService.

The async session is mocked; lookups are patched on the service so each
test controls exactly which rows the service sees.
"""

import pytest
from datetime import date
from decimal import Decimal
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

from inmodash.data.obligations.models import Obligation, ObligationPayment
from inmodash.services.obligations import ObligationService, resolve_owner_id
from inmodash.services.recurring import RecurringObligationService


USER_ID = "user_1"


@pytest.fixture
def service(mock_db):
    return ObligationService(mock_db, USER_ID)


def make_apartment(owner_id=None, building_owner_id=None):
    building = SimpleNamespace(owner_id=building_owner_id) if building_owner_id else None
    return SimpleNamespace(owner_id=owner_id, building=building)


def make_obligation(**overrides):
    fields = dict(
        id="obl_1",
        type="rent",
        amount=Decimal("1000.00"),
        paid_amount=Decimal("0.00"),
        due_date=date(2030, 1, 10),
        paid_by="tenant",
        owner_amount=Decimal("900.00"),
        contract=SimpleNamespace(apartment=make_apartment(owner_id="owner_1")),
        apartment=None,
        payments=[],
        commission_type=None,
        commission_value=None,
    )
    fields.update(overrides)
    return SimpleNamespace(**fields)


def scalars_result(items):
    result = MagicMock()
    result.scalars.return_value.all.return_value = list(items)
    return result


def added_of_type(mock_db, cls):
    return [call.args[0] for call in mock_db.add.call_args_list if isinstance(call.args[0], cls)]


# =============================================================================
# Owner resolution
# =============================================================================

class TestResolveOwner:

    def test_contract_apartment_owner_first(self):
        obligation = SimpleNamespace(
            contract=SimpleNamespace(apartment=make_apartment(owner_id="owner_contract")),
            apartment=make_apartment(owner_id="owner_direct"),
        )
        assert resolve_owner_id(obligation) == "owner_contract"

    def test_falls_back_to_building_owner(self):
        obligation = SimpleNamespace(
            contract=SimpleNamespace(apartment=make_apartment(building_owner_id="owner_building")),
            apartment=None,
        )
        assert resolve_owner_id(obligation) == "owner_building"

    def test_apartment_without_contract(self):
        obligation = SimpleNamespace(contract=None, apartment=make_apartment(owner_id="owner_direct"))
        assert resolve_owner_id(obligation) == "owner_direct"

    def test_unresolvable(self):
        obligation = SimpleNamespace(contract=None, apartment=make_apartment())
        assert resolve_owner_id(obligation) is None


# =============================================================================
# Obligation CRUD
# =============================================================================

class TestCreateObligation:

    @pytest.mark.asyncio
    async def test_rent_uses_contract_commission(self, service, mock_db):
        contract = SimpleNamespace(
            id="ctr_1", apartment_id="apt_1",
            commission_type="percentage", commission_value=Decimal("10"),
        )
        with patch.object(service, "_get_contract", AsyncMock(return_value=contract)), \
             patch.object(service, "get_obligation", AsyncMock(return_value="created")):
            result = await service.create_obligation({
                "contract_id": "ctr_1",
                "type": "rent",
                "description": "Rent 03/2026",
                "period": "2026-03",
                "due_date": date(2026, 3, 10),
                "amount": Decimal("100000"),
            })

        assert result == "created"
        obligation = added_of_type(mock_db, Obligation)[0]
        assert obligation.apartment_id == "apt_1"
        assert obligation.period == date(2026, 3, 1)
        assert obligation.commission_amount == Decimal("10000.00")
        assert obligation.owner_impact == Decimal("90000.00")
        assert obligation.agency_impact == Decimal("10000.00")
        assert obligation.commission_type == "percentage"
        assert obligation.commission_value == Decimal("10.00")
        mock_db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_manual_impacts_override_rules(self, service, mock_db):
        with patch.object(service, "_active_contract_for_apartment", AsyncMock(return_value=None)), \
             patch.object(service, "get_obligation", AsyncMock(return_value="created")):
            await service.create_obligation({
                "apartment_id": "apt_1",
                "type": "debt",
                "description": "Old plumbing debt",
                "period": date(2026, 3, 5),
                "due_date": date(2026, 3, 20),
                "amount": Decimal("5000"),
                "owner_impact": Decimal("-3000"),
                "agency_impact": Decimal("-2000"),
            })

        obligation = added_of_type(mock_db, Obligation)[0]
        assert obligation.owner_impact == Decimal("-3000.00")
        assert obligation.agency_impact == Decimal("-2000.00")
        assert obligation.contract_id is None

    @pytest.mark.asyncio
    async def test_manual_impacts_cannot_exceed_amount(self, service):
        with patch.object(service, "_active_contract_for_apartment", AsyncMock(return_value=None)):
            with pytest.raises(ValueError):
                await service.create_obligation({
                    "apartment_id": "apt_1",
                    "type": "debt",
                    "description": "Debt",
                    "period": "2026-03",
                    "due_date": date(2026, 3, 20),
                    "amount": Decimal("100"),
                    "owner_impact": Decimal("-80"),
                    "agency_impact": Decimal("-30"),
                })

    @pytest.mark.asyncio
    async def test_unknown_contract(self, service):
        with patch.object(service, "_get_contract", AsyncMock(return_value=None)):
            with pytest.raises(ValueError, match="Contract not found"):
                await service.create_obligation({
                    "contract_id": "missing",
                    "type": "rent",
                    "description": "Rent",
                    "period": "2026-03",
                    "due_date": date(2026, 3, 10),
                    "amount": Decimal("100"),
                })

    @pytest.mark.asyncio
    async def test_attaches_active_contract_of_apartment(self, service, mock_db):
        contract = SimpleNamespace(
            id="ctr_9", apartment_id="apt_1", commission_type=None, commission_value=None,
        )
        with patch.object(service, "_active_contract_for_apartment", AsyncMock(return_value=contract)), \
             patch.object(service, "get_obligation", AsyncMock(return_value="created")):
            await service.create_obligation({
                "apartment_id": "apt_1",
                "type": "tax",
                "description": "Municipal tax",
                "period": "2026-03",
                "due_date": date(2026, 3, 15),
                "amount": Decimal("4500"),
                "paid_by": "owner",
            })

        obligation = added_of_type(mock_db, Obligation)[0]
        assert obligation.contract_id == "ctr_9"
        assert obligation.owner_impact == Decimal("-4500.00")

    @pytest.mark.asyncio
    async def test_created_paid_keeps_payment_trail(self, service, mock_db):
        with patch.object(service, "_active_contract_for_apartment", AsyncMock(return_value=None)), \
             patch.object(service, "get_obligation", AsyncMock(return_value="created")):
            await service.create_obligation({
                "apartment_id": "apt_1",
                "type": "maintenance",
                "description": "Credit for repair",
                "period": "2026-03",
                "due_date": date(2026, 3, 15),
                "amount": Decimal("2500"),
                "paid_amount": Decimal("2500"),
                "paid_by": "owner",
            })

        obligation = added_of_type(mock_db, Obligation)[0]
        payments = added_of_type(mock_db, ObligationPayment)
        assert obligation.status == "paid"
        assert len(payments) == 1
        assert payments[0].amount == Decimal("2500.00")
        assert payments[0].notes == "Automatic adjustment"

    @pytest.mark.asyncio
    async def test_paid_amount_above_amount_rejected(self, service):
        with patch.object(service, "_active_contract_for_apartment", AsyncMock(return_value=None)):
            with pytest.raises(ValueError, match="exceeds"):
                await service.create_obligation({
                    "apartment_id": "apt_1",
                    "type": "service",
                    "description": "Electricity",
                    "period": "2026-03",
                    "due_date": date(2026, 3, 15),
                    "amount": Decimal("100"),
                    "paid_amount": Decimal("150"),
                })


class TestUpdateObligation:

    @pytest.mark.asyncio
    async def test_amount_below_paid_rejected(self, service):
        obligation = make_obligation(paid_amount=Decimal("600.00"))
        with patch.object(service, "get_obligation", AsyncMock(return_value=obligation)):
            with pytest.raises(ValueError, match="already paid"):
                await service.update_obligation("obl_1", {"amount": Decimal("500")})

    @pytest.mark.asyncio
    async def test_amount_change_redistributes(self, service):
        obligation = make_obligation(
            contract=SimpleNamespace(
                apartment=make_apartment(owner_id="owner_1"),
                commission_type="percentage",
                commission_value=Decimal("5"),
            ),
        )
        with patch.object(service, "get_obligation", AsyncMock(return_value=obligation)), \
             patch.object(service, "recalculate_owner_balance", AsyncMock()):
            await service.update_obligation("obl_1", {"amount": Decimal("2000")})

        assert obligation.amount == Decimal("2000.00")
        assert obligation.commission_amount == Decimal("100.00")
        assert obligation.owner_impact == Decimal("1900.00")
        assert obligation.status == "pending"

    @pytest.mark.asyncio
    async def test_amount_change_keeps_own_commission_without_contract(self, service):
        obligation = make_obligation(
            contract=None,
            apartment=make_apartment(owner_id="owner_1"),
            commission_type="percentage",
            commission_value=Decimal("10.00"),
        )
        with patch.object(service, "get_obligation", AsyncMock(return_value=obligation)), \
             patch.object(service, "recalculate_owner_balance", AsyncMock()):
            await service.update_obligation("obl_1", {"amount": Decimal("1200")})

        assert obligation.agency_impact == Decimal("120.00")
        assert obligation.owner_impact == Decimal("1080.00")

    @pytest.mark.asyncio
    async def test_amount_change_rebuilds_owner_balance(self, service, mock_db):
        obligation = make_obligation()
        with patch.object(service, "get_obligation", AsyncMock(return_value=obligation)), \
             patch.object(service, "recalculate_owner_balance", AsyncMock()) as recalculate:
            await service.update_obligation("obl_1", {"amount": Decimal("1500")})

        recalculate.assert_awaited_once_with("owner_1")
        mock_db.commit.assert_awaited()

    @pytest.mark.asyncio
    async def test_notes_change_leaves_balances_alone(self, service):
        obligation = make_obligation()
        with patch.object(service, "get_obligation", AsyncMock(return_value=obligation)), \
             patch.object(service, "recalculate_owner_balance", AsyncMock()) as recalculate:
            await service.update_obligation("obl_1", {"notes": "Called the tenant"})

        assert obligation.notes == "Called the tenant"
        recalculate.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_missing_obligation(self, service):
        with patch.object(service, "get_obligation", AsyncMock(return_value=None)):
            assert await service.update_obligation("nope", {"notes": "x"}) is None


class TestDeleteObligation:

    @pytest.mark.asyncio
    async def test_rebuilds_owner_and_balance_payer(self, service, mock_db):
        obligation = make_obligation(payments=[
            SimpleNamespace(id="opay_1", owner_id=None, applied_to_owner_balance=False),
            SimpleNamespace(id="opay_2", owner_id="owner_2", applied_to_owner_balance=True),
        ])
        with patch.object(service, "get_obligation", AsyncMock(return_value=obligation)), \
             patch.object(service, "recalculate_owner_balance", AsyncMock()) as recalculate:
            assert await service.delete_obligation("obl_1") is True

        mock_db.delete.assert_awaited_once_with(obligation)
        assert [c.args[0] for c in recalculate.await_args_list] == ["owner_1", "owner_2"]

    @pytest.mark.asyncio
    async def test_missing_obligation(self, service, mock_db):
        with patch.object(service, "get_obligation", AsyncMock(return_value=None)):
            assert await service.delete_obligation("nope") is False
        mock_db.delete.assert_not_called()


class TestMarkOverdue:

    @pytest.mark.asyncio
    async def test_returns_updated_count(self, service, mock_db):
        mock_db.execute.return_value = MagicMock(rowcount=3)

        count = await service.mark_overdue(today=date(2026, 3, 20))

        assert count == 3
        mock_db.commit.assert_awaited_once()


# =============================================================================
# Payments
# =============================================================================

class TestCreatePayment:

    @pytest.mark.asyncio
    async def test_tenant_payment_credits_owner_share(self, service, mock_db):
        obligation = make_obligation()
        owner = SimpleNamespace(id="owner_1", balance=Decimal("100.00"))

        with patch.object(service, "get_obligation", AsyncMock(return_value=obligation)), \
             patch.object(service, "_get_owner", AsyncMock(return_value=owner)):
            payment = await service.create_payment({
                "obligation_id": "obl_1",
                "amount": Decimal("500"),
                "payment_date": date(2026, 3, 8),
                "method": "transfer",
            })

        assert isinstance(payment, ObligationPayment)
        assert payment.method == "transfer"
        assert obligation.paid_amount == Decimal("500.00")
        assert obligation.status == "partial"
        assert owner.balance == Decimal("550.00")
        mock_db.refresh.assert_awaited_once_with(payment)

    @pytest.mark.asyncio
    async def test_full_payment_marks_paid(self, service):
        obligation = make_obligation(paid_amount=Decimal("400.00"))
        owner = SimpleNamespace(id="owner_1", balance=Decimal("0.00"))

        with patch.object(service, "get_obligation", AsyncMock(return_value=obligation)), \
             patch.object(service, "_get_owner", AsyncMock(return_value=owner)):
            await service.create_payment({
                "obligation_id": "obl_1",
                "amount": Decimal("600"),
                "payment_date": date(2026, 3, 8),
            })

        assert obligation.status == "paid"
        assert owner.balance == Decimal("540.00")

    @pytest.mark.asyncio
    async def test_exceeding_remaining_rejected(self, service):
        obligation = make_obligation(paid_amount=Decimal("800.00"))
        with patch.object(service, "get_obligation", AsyncMock(return_value=obligation)):
            with pytest.raises(ValueError, match="exceeds remaining"):
                await service.create_payment({
                    "obligation_id": "obl_1",
                    "amount": Decimal("300"),
                    "payment_date": date(2026, 3, 8),
                })

    @pytest.mark.asyncio
    async def test_non_positive_amount_rejected(self, service):
        with patch.object(service, "get_obligation", AsyncMock(return_value=make_obligation())):
            with pytest.raises(ValueError, match="greater than 0"):
                await service.create_payment({
                    "obligation_id": "obl_1",
                    "amount": Decimal("0"),
                    "payment_date": date(2026, 3, 8),
                })

    @pytest.mark.asyncio
    async def test_missing_obligation(self, service):
        with patch.object(service, "get_obligation", AsyncMock(return_value=None)):
            assert await service.create_payment({
                "obligation_id": "nope",
                "amount": Decimal("10"),
                "payment_date": date(2026, 3, 8),
            }) is None

    @pytest.mark.asyncio
    async def test_owner_balance_payment_debits_owner(self, service):
        obligation = make_obligation(
            type="tax", paid_by="owner", amount=Decimal("200.00"), owner_amount=Decimal("0.00"),
        )
        owner = SimpleNamespace(id="owner_1", balance=Decimal("300.00"))

        with patch.object(service, "get_obligation", AsyncMock(return_value=obligation)), \
             patch.object(service, "_get_owner", AsyncMock(return_value=owner)):
            payment = await service.create_payment({
                "obligation_id": "obl_1",
                "amount": Decimal("200"),
                "payment_date": date(2026, 3, 8),
                "applied_to_owner_balance": True,
            })

        assert payment.method == "owner_balance"
        assert payment.owner_id == "owner_1"
        assert owner.balance == Decimal("100.00")
        assert obligation.status == "paid"

    @pytest.mark.asyncio
    async def test_owner_balance_insufficient(self, service, mock_db):
        obligation = make_obligation(type="tax", paid_by="owner", owner_amount=Decimal("0.00"))
        owner = SimpleNamespace(id="owner_1", balance=Decimal("100.00"))

        with patch.object(service, "get_obligation", AsyncMock(return_value=obligation)), \
             patch.object(service, "_get_owner", AsyncMock(return_value=owner)):
            with pytest.raises(ValueError, match="Insufficient owner balance"):
                await service.create_payment({
                    "obligation_id": "obl_1",
                    "amount": Decimal("200"),
                    "payment_date": date(2026, 3, 8),
                    "applied_to_owner_balance": True,
                })

        mock_db.commit.assert_not_awaited()
        assert owner.balance == Decimal("100.00")

    @pytest.mark.asyncio
    async def test_owner_balance_requires_owner(self, service):
        obligation = make_obligation(contract=None, apartment=make_apartment())
        with patch.object(service, "get_obligation", AsyncMock(return_value=obligation)):
            with pytest.raises(ValueError, match="owner is required"):
                await service.create_payment({
                    "obligation_id": "obl_1",
                    "amount": Decimal("10"),
                    "payment_date": date(2026, 3, 8),
                    "applied_to_owner_balance": True,
                })


class TestUpdateAndDeletePayment:

    @pytest.mark.asyncio
    async def test_update_amount_recomputes_paid_and_balances(self, service):
        payment = SimpleNamespace(id="pay_1", obligation_id="obl_1", amount=Decimal("300.00"), owner_id=None)
        other = SimpleNamespace(id="pay_2", amount=Decimal("200.00"))
        obligation = make_obligation(paid_amount=Decimal("500.00"), payments=[payment, other])

        with patch.object(service, "get_payment", AsyncMock(return_value=payment)), \
             patch.object(service, "get_obligation", AsyncMock(return_value=obligation)), \
             patch.object(service, "recalculate_owner_balance", AsyncMock()) as recalc:
            await service.update_payment("pay_1", {"amount": Decimal("800")})

        assert payment.amount == Decimal("800.00")
        assert obligation.paid_amount == Decimal("1000.00")
        assert obligation.status == "paid"
        recalc.assert_awaited_once_with("owner_1")

    @pytest.mark.asyncio
    async def test_update_amount_over_total_rejected(self, service):
        payment = SimpleNamespace(id="pay_1", obligation_id="obl_1", amount=Decimal("300.00"), owner_id=None)
        other = SimpleNamespace(id="pay_2", amount=Decimal("600.00"))
        obligation = make_obligation(paid_amount=Decimal("900.00"), payments=[payment, other])

        with patch.object(service, "get_payment", AsyncMock(return_value=payment)), \
             patch.object(service, "get_obligation", AsyncMock(return_value=obligation)):
            with pytest.raises(ValueError, match="exceeds remaining"):
                await service.update_payment("pay_1", {"amount": Decimal("500")})

    @pytest.mark.asyncio
    async def test_delete_reopens_obligation(self, service, mock_db):
        payment = SimpleNamespace(id="pay_1", obligation_id="obl_1", amount=Decimal("1000.00"), owner_id=None)
        obligation = make_obligation(paid_amount=Decimal("1000.00"), payments=[payment])

        with patch.object(service, "get_payment", AsyncMock(return_value=payment)), \
             patch.object(service, "get_obligation", AsyncMock(return_value=obligation)), \
             patch.object(service, "recalculate_owner_balance", AsyncMock()) as recalc:
            assert await service.delete_payment("pay_1") is True

        mock_db.delete.assert_awaited_once_with(payment)
        assert obligation.paid_amount == Decimal("0.00")
        assert obligation.status == "pending"
        recalc.assert_awaited_once_with("owner_1")


# =============================================================================
# Owner balances
# =============================================================================

class TestRecalculateOwnerBalance:

    @pytest.mark.asyncio
    async def test_rebuilds_from_payment_history(self, service, mock_db):
        owner = SimpleNamespace(id="owner_1", name="Ana Perez", balance=Decimal("999.00"))
        mine = make_obligation()
        someone_else = make_obligation(
            id="obl_2", contract=SimpleNamespace(apartment=make_apartment(owner_id="owner_2")),
        )
        tenant_payments = [
            SimpleNamespace(amount=Decimal("1000.00"), obligation=mine),
            SimpleNamespace(amount=Decimal("1000.00"), obligation=someone_else),
        ]
        balance_payments = [SimpleNamespace(amount=Decimal("150.00"))]
        mock_db.execute.side_effect = [scalars_result(tenant_payments), scalars_result(balance_payments)]

        with patch.object(service, "_get_owner", AsyncMock(return_value=owner)):
            result = await service.recalculate_owner_balance("owner_1")

        assert result["previous_balance"] == Decimal("999.00")
        assert result["total_income"] == Decimal("900.00")
        assert result["total_deducted"] == Decimal("150.00")
        assert result["new_balance"] == Decimal("750.00")
        assert result["payments_processed"] == 1
        assert owner.balance == Decimal("750.00")

    @pytest.mark.asyncio
    async def test_unknown_owner(self, service):
        with patch.object(service, "_get_owner", AsyncMock(return_value=None)):
            assert await service.recalculate_owner_balance("nope") is None


# =============================================================================
# Monthly generation
# =============================================================================

def make_contract(**overrides):
    fields = dict(
        id="ctr_1",
        apartment_id="apt_1",
        start_date=date(2025, 1, 1),
        end_date=date(2027, 12, 31),
        initial_amount=Decimal("1000.00"),
        commission_type="percentage",
        commission_value=Decimal("10"),
        update_index_type="none",
        update_frequency_months=None,
        initial_index_value=None,
        fixed_update_coefficient=None,
    )
    fields.update(overrides)
    return SimpleNamespace(**fields)


NO_RECURRING = {"generated": 0, "skipped": 0, "errors": []}


class TestGenerateObligations:

    @pytest.mark.asyncio
    async def test_generates_rent_for_active_contract(self, service, mock_db):
        mock_db.execute.return_value = scalars_result([make_contract()])

        with patch.object(service, "_rent_exists", AsyncMock(return_value=False)), \
             patch.object(service, "_previous_rent_amount", AsyncMock(return_value=None)), \
             patch.object(RecurringObligationService, "generate_for_month", AsyncMock(return_value=NO_RECURRING)):
            result = await service.generate_obligations(date(2026, 3, 1))

        assert result["month"] == "2026-03"
        assert result["generated"] == 1
        assert result["rent_generated"] == 1
        assert result["errors"] == []

        rent = added_of_type(mock_db, Obligation)[0]
        assert rent.amount == Decimal("1000.00")
        assert rent.owner_impact == Decimal("900.00")
        assert rent.commission_amount == Decimal("100.00")
        assert rent.due_date == date(2026, 3, 10)
        assert rent.description == "Rent 03/2026"
        assert rent.is_auto_generated is True

    @pytest.mark.asyncio
    async def test_existing_rent_is_skipped(self, service, mock_db):
        mock_db.execute.return_value = scalars_result([make_contract()])

        with patch.object(service, "_rent_exists", AsyncMock(return_value=True)), \
             patch.object(RecurringObligationService, "generate_for_month", AsyncMock(return_value=NO_RECURRING)):
            result = await service.generate_obligations(date(2026, 3, 1))

        assert result["generated"] == 0
        assert result["skipped"] == 1
        assert added_of_type(mock_db, Obligation) == []

    @pytest.mark.asyncio
    async def test_failing_contract_does_not_stop_batch(self, service, mock_db):
        broken = make_contract(id="ctr_bad", commission_type="fixed", commission_value=Decimal("5000"))
        mock_db.execute.return_value = scalars_result([broken, make_contract(id="ctr_ok")])

        with patch.object(service, "_rent_exists", AsyncMock(return_value=False)), \
             patch.object(service, "_previous_rent_amount", AsyncMock(return_value=None)), \
             patch.object(RecurringObligationService, "generate_for_month", AsyncMock(return_value=NO_RECURRING)):
            result = await service.generate_obligations(date(2026, 3, 1))

        assert result["rent_generated"] == 1
        assert len(result["errors"]) == 1
        assert result["errors"][0]["contract_id"] == "ctr_bad"

    @pytest.mark.asyncio
    async def test_fixed_escalation_in_description(self, service, mock_db):
        contract = make_contract(
            update_index_type="fixed", update_frequency_months=12, fixed_update_coefficient=Decimal("1.1"),
        )
        mock_db.execute.return_value = scalars_result([contract])

        with patch.object(service, "_rent_exists", AsyncMock(return_value=False)), \
             patch.object(service, "_previous_rent_amount", AsyncMock(return_value=Decimal("1000.00"))), \
             patch.object(RecurringObligationService, "generate_for_month", AsyncMock(return_value=NO_RECURRING)):
            await service.generate_obligations(date(2026, 1, 1))

        rent = added_of_type(mock_db, Obligation)[0]
        assert rent.amount == Decimal("1100.00")
        assert rent.description == "Rent 01/2026 (updated 10.0% by FIXED)"
        assert rent.notes == "Amount update applied: coefficient 1.1000"
        assert rent.commission_type == "percentage"

    @pytest.mark.asyncio
    async def test_index_failure_keeps_previous_rent(self, service, mock_db):
        from inmodash.indices.client import RentIndexError

        contract = make_contract(
            update_index_type="icl", update_frequency_months=12, initial_index_value=Decimal("25"),
        )
        mock_db.execute.return_value = scalars_result([contract])
        client = MagicMock()
        client.get_index = AsyncMock(side_effect=RentIndexError("down"))

        with patch("inmodash.services.obligations.get_rent_index_client", return_value=client), \
             patch.object(service, "_rent_exists", AsyncMock(return_value=False)), \
             patch.object(service, "_previous_rent_amount", AsyncMock(return_value=Decimal("1000.00"))), \
             patch.object(RecurringObligationService, "generate_for_month", AsyncMock(return_value=NO_RECURRING)):
            result = await service.generate_obligations(date(2026, 1, 1))

        assert result["errors"] == []
        rent = added_of_type(mock_db, Obligation)[0]
        assert rent.amount == Decimal("1000.00")
        assert rent.description == "Rent 01/2026"

    @pytest.mark.asyncio
    async def test_includes_recurring_results(self, service, mock_db):
        mock_db.execute.return_value = scalars_result([])
        recurring = {"generated": 2, "skipped": 1, "errors": [{"recurring_obligation_id": "rec_1", "error": "x"}]}

        with patch.object(RecurringObligationService, "generate_for_month", AsyncMock(return_value=recurring)):
            result = await service.generate_obligations(date(2026, 3, 1))

        assert result["generated"] == 2
        assert result["recurring_generated"] == 2
        assert result["skipped"] == 1
        assert len(result["errors"]) == 1
