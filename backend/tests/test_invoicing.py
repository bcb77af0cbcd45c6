"""Invoice / purchase-invoice generation, flag compare-and-swap and payments."""

from datetime import date, timedelta
from decimal import Decimal

import pytest
from sqlalchemy import func, select

from app.middleware.exceptions import (
    BusinessLogicError, ConflictError, GuardViolationError, IntegrityViolationError,
)
from app.models.activity_log import ActivityLog
from app.models.costing import ShipmentCosting
from app.models.enums import PaymentStatus
from app.models.invoice import Invoice, InvoiceLine
from app.models.receipt import Receipt
from app.services import invoicing
from app.services.invoicing import (
    INVOICE,
    PURCHASE_INVOICE,
    apply_payment,
    claim_costings,
    close_document,
    delete_document,
    generate_document,
    release_costings,
    update_document,
)

INVOICE_DATE = date(2026, 3, 10)


async def flags(db, costing_id: str) -> tuple[bool, bool]:
    row = (await db.execute(
        select(ShipmentCosting.sale_invoiced, ShipmentCosting.purchase_invoiced)
        .where(ShipmentCosting.id == costing_id)
    )).one()
    return bool(row[0]), bool(row[1])


async def invoice_for(db, user, job, costing_ids, **kwargs):
    document = await generate_document(
        db, INVOICE, user,
        shipment_id=job.shipment_id,
        party_id=job.consignee_id,
        costing_ids=costing_ids,
        invoice_date=kwargs.pop("invoice_date", INVOICE_DATE),
        **kwargs,
    )
    await db.commit()
    return document


@pytest.mark.integration
@pytest.mark.asyncio
class TestGenerateInvoice:
    async def test_invoice_snapshots_sale_side(self, db_session, admin_user, job, add_line, reference):
        costing_id = await add_line(unit_id=reference.unit_id)

        invoice = await invoice_for(db_session, admin_user, job, [costing_id])

        assert invoice.invoice_number == "INVAE260001"
        assert invoice.customer_id == job.consignee_id
        assert invoice.currency == "AED"
        assert invoice.sub_total == Decimal("917.50")
        assert invoice.total_tax == Decimal("45.88")
        assert invoice.amount == Decimal("963.38")
        assert invoice.balance_amount == Decimal("963.38")
        assert invoice.paid_amount == Decimal("0")
        assert invoice.payment_status == PaymentStatus.PENDING
        assert invoice.due_date == INVOICE_DATE + timedelta(days=30)

        [line] = invoice.lines
        assert line.line_no == 1
        assert line.costing_id == costing_id
        assert line.charge_details == "Ocean Freight"
        assert line.basis == "Per Container"
        assert line.currency == "USD"
        assert line.roe == Decimal("3.67")
        assert line.fcy_amount == Decimal("250.00")
        assert line.amount == Decimal("917.50")

        assert await flags(db_session, costing_id) == (True, False)

    async def test_purchase_invoice_snapshots_cost_side(self, db_session, admin_user, job, add_line):
        costing_id = await add_line()

        purchase = await generate_document(
            db_session, PURCHASE_INVOICE, admin_user,
            shipment_id=job.shipment_id,
            party_id=job.vendor_id,
            costing_ids=[costing_id],
            invoice_date=INVOICE_DATE,
            extra={"vendor_invoice_no": "BOL-7781", "vendor_invoice_date": INVOICE_DATE},
        )
        await db_session.commit()

        assert purchase.purchase_number == "PIAE260001"
        assert purchase.vendor_invoice_no == "BOL-7781"
        assert purchase.amount == Decimal("550.50")
        assert purchase.due_date == INVOICE_DATE + timedelta(days=15)
        assert await flags(db_session, costing_id) == (False, True)

    async def test_explicit_due_date_wins(self, db_session, admin_user, job, add_line):
        costing_id = await add_line()
        invoice = await invoice_for(
            db_session, admin_user, job, [costing_id], due_date=date(2026, 4, 30),
        )
        assert invoice.due_date == date(2026, 4, 30)

    async def test_line_order_follows_selection(self, db_session, admin_user, job, add_line):
        first = await add_line(description="Terminal Handling")
        second = await add_line(description="Documentation")

        invoice = await invoice_for(db_session, admin_user, job, [second, first])

        assert [line.charge_details for line in invoice.lines] == ["Documentation", "Terminal Handling"]
        assert [line.line_no for line in invoice.lines] == [1, 2]

    async def test_already_invoiced_line_is_rejected(self, db_session, admin_user, job, add_line):
        costing_id = await add_line()
        await invoice_for(db_session, admin_user, job, [costing_id])

        with pytest.raises(ConflictError) as exc:
            await invoice_for(db_session, admin_user, job, [costing_id])
        assert exc.value.details["retryable"] is True

    async def test_generation_is_audited(self, db_session, admin_user, job, add_line):
        costing_id = await add_line()
        invoice = await invoice_for(db_session, admin_user, job, [costing_id])

        entry = (await db_session.execute(
            select(ActivityLog).where(ActivityLog.entity_id == invoice.id)
        )).scalar_one()
        assert entry.action == "generated"
        assert entry.entity_code == "INVAE260001"
        assert entry.user_name == "Test Admin"
        assert entry.details == {"costing_ids": [costing_id]}

    async def test_party_mismatch(self, db_session, admin_user, job, add_line):
        costing_id = await add_line()
        with pytest.raises(BusinessLogicError) as exc:
            await generate_document(
                db_session, INVOICE, admin_user,
                shipment_id=job.shipment_id,
                party_id=job.vendor_id,
                costing_ids=[costing_id],
            )
        assert exc.value.error_code == "PARTY_MISMATCH"

    async def test_costing_from_another_shipment(self, db_session, admin_user, job, add_line):
        with pytest.raises(BusinessLogicError) as exc:
            await generate_document(
                db_session, INVOICE, admin_user,
                shipment_id=job.shipment_id,
                party_id=job.consignee_id,
                costing_ids=["not-a-costing"],
            )
        assert exc.value.error_code == "COSTING_NOT_ON_SHIPMENT"

    async def test_zero_total_is_rejected(self, db_session, admin_user, job, add_line):
        costing_id = await add_line(sale_qty=Decimal("0"))
        with pytest.raises(BusinessLogicError) as exc:
            await invoice_for(db_session, admin_user, job, [costing_id])
        assert exc.value.error_code == "EMPTY_DOCUMENT"


@pytest.mark.integration
@pytest.mark.asyncio
class TestCostingFlagSwap:
    async def test_overlapping_claim_fails_as_a_whole(self, db_session, session_factory, add_line):
        c1, c2, c3 = [await add_line(description=f"Charge {i}") for i in range(3)]
        await claim_costings(db_session, INVOICE, [c1, c2])
        await db_session.commit()

        async with session_factory() as other:
            with pytest.raises(ConflictError):
                await claim_costings(other, INVOICE, [c2, c3])
            await other.rollback()

        assert await flags(db_session, c1) == (True, False)
        assert await flags(db_session, c2) == (True, False)
        assert await flags(db_session, c3) == (False, False)

    async def test_second_user_cannot_bill_committed_lines(
        self, db_session, session_factory, admin_user, job, add_line,
    ):
        c1, c2, c3 = [await add_line(description=f"Charge {i}") for i in range(3)]
        await invoice_for(db_session, admin_user, job, [c1, c2])

        async with session_factory() as other:
            with pytest.raises(ConflictError) as exc:
                await generate_document(
                    other, INVOICE, admin_user,
                    shipment_id=job.shipment_id, party_id=job.consignee_id,
                    costing_ids=[c2, c3], invoice_date=INVOICE_DATE,
                )
            assert exc.value.details["costing_ids"] == [c2]
            await other.rollback()

        numbers = (await db_session.execute(select(Invoice.invoice_number))).scalars().all()
        assert numbers == ["INVAE260001"]
        assert await flags(db_session, c1) == (True, False)
        assert await flags(db_session, c2) == (True, False)
        assert await flags(db_session, c3) == (False, False)

    async def test_line_billed_after_selection_rolls_back_everything(
        self, db_session, session_factory, admin_user, job, add_line, monkeypatch,
    ):
        c1, c2, c3 = [await add_line(description=f"Charge {i}") for i in range(3)]
        build_lines = invoicing._build_lines

        async def build_then_lose_race(db, kind, costings):
            built = await build_lines(db, kind, costings)
            # Another user bills c2 between the selection check and the claim
            async with session_factory() as other:
                await claim_costings(other, INVOICE, [c2])
                await other.commit()
            return built

        monkeypatch.setattr(invoicing, "_build_lines", build_then_lose_race)
        with pytest.raises(ConflictError):
            await generate_document(
                db_session, INVOICE, admin_user,
                shipment_id=job.shipment_id, party_id=job.consignee_id,
                costing_ids=[c1, c2], invoice_date=INVOICE_DATE,
            )
        await db_session.rollback()
        monkeypatch.undo()

        assert await db_session.scalar(select(func.count(Invoice.id))) == 0
        assert await db_session.scalar(select(func.count(InvoiceLine.id))) == 0
        assert await flags(db_session, c1) == (False, False)
        assert await flags(db_session, c2) == (True, False)

        invoice = await invoice_for(db_session, admin_user, job, [c1, c3])
        assert invoice.invoice_number == "INVAE260001"

    async def test_sides_are_independent(self, db_session, add_line):
        costing_id = await add_line()
        await claim_costings(db_session, INVOICE, [costing_id])
        await claim_costings(db_session, PURCHASE_INVOICE, [costing_id])
        assert await flags(db_session, costing_id) == (True, True)

    async def test_release_of_unflagged_line_is_an_integrity_failure(self, db_session, add_line):
        costing_id = await add_line()
        with pytest.raises(IntegrityViolationError) as exc:
            await release_costings(db_session, INVOICE, [costing_id])
        assert exc.value.status_code == 500
        assert exc.value.error_code == "INTEGRITY_FAILURE"


@pytest.mark.integration
@pytest.mark.asyncio
class TestEditAndDeleteInvoice:
    async def test_reselect_releases_and_claims(self, db_session, admin_user, job, add_line):
        first = await add_line()
        second = await add_line(description="Delivery Order", sale_unit=Decimal("100"))
        invoice = await invoice_for(db_session, admin_user, job, [first])

        invoice = await update_document(
            db_session, INVOICE, admin_user, invoice.id, costing_ids=[second],
        )
        await db_session.commit()

        assert [line.costing_id for line in invoice.lines] == [second]
        assert invoice.sub_total == Decimal("367.00")
        assert invoice.amount == Decimal("385.35")
        assert invoice.balance_amount == Decimal("385.35")
        assert invoice.invoice_number == "INVAE260001"
        assert await flags(db_session, first) == (False, False)
        assert await flags(db_session, second) == (True, False)

    async def test_edit_picks_up_current_costing_values(self, db_session, admin_user, job, add_line):
        costing_id = await add_line()
        invoice = await invoice_for(db_session, admin_user, job, [costing_id])

        costing = await db_session.get(ShipmentCosting, costing_id)
        assert invoice.lines[0].amount == costing.sale_lcy

        invoice = await update_document(
            db_session, INVOICE, admin_user, invoice.id,
            costing_ids=[costing_id], remarks="Re-issued",
        )
        assert invoice.remarks == "Re-issued"
        assert invoice.amount == Decimal("963.38")

    async def test_total_cannot_drop_below_paid(self, db_session, admin_user, job, add_line):
        first = await add_line()
        second = await add_line(description="Storage")
        invoice = await invoice_for(db_session, admin_user, job, [first, second])
        await apply_payment(db_session, INVOICE, admin_user, invoice.id, amount=Decimal("1000.00"))
        await db_session.commit()

        with pytest.raises(BusinessLogicError) as exc:
            await update_document(db_session, INVOICE, admin_user, invoice.id, costing_ids=[first])
        assert exc.value.error_code == "TOTAL_BELOW_PAID"

    async def test_closed_document_cannot_be_edited(self, db_session, admin_user, job, add_line):
        costing_id = await add_line()
        invoice = await invoice_for(db_session, admin_user, job, [costing_id])
        await close_document(db_session, INVOICE, admin_user, invoice.id)
        await db_session.commit()

        with pytest.raises(BusinessLogicError) as exc:
            await update_document(db_session, INVOICE, admin_user, invoice.id, costing_ids=[costing_id])
        assert exc.value.error_code == "DOCUMENT_CLOSED"

    async def test_delete_releases_flags(self, db_session, admin_user, job, add_line):
        costing_id = await add_line()
        invoice = await invoice_for(db_session, admin_user, job, [costing_id])

        await delete_document(db_session, INVOICE, admin_user, invoice.id)
        await db_session.commit()

        assert await flags(db_session, costing_id) == (False, False)

    async def test_numbers_are_not_reused_after_delete(self, db_session, admin_user, job, add_line):
        costing_id = await add_line()
        first = await invoice_for(db_session, admin_user, job, [costing_id])
        await delete_document(db_session, INVOICE, admin_user, first.id)
        await db_session.commit()

        second = await invoice_for(db_session, admin_user, job, [costing_id])
        assert first.invoice_number == "INVAE260001"
        assert second.invoice_number == "INVAE260002"

    async def test_paid_invoice_cannot_be_deleted(self, db_session, admin_user, job, add_line):
        costing_id = await add_line()
        invoice = await invoice_for(db_session, admin_user, job, [costing_id])
        await apply_payment(db_session, INVOICE, admin_user, invoice.id, amount=Decimal("10.00"))
        await db_session.commit()

        with pytest.raises(GuardViolationError) as exc:
            await delete_document(db_session, INVOICE, admin_user, invoice.id)
        assert exc.value.error_code == "PAYMENTS_APPLIED"
        assert exc.value.status_code == 409


@pytest.mark.integration
@pytest.mark.asyncio
class TestPayments:
    async def _thousand_invoice(self, db_session, admin_user, job, add_line):
        costing_id = await add_line(
            sale_unit=Decimal("1000"), sale_currency="AED",
            sale_ex_rate=Decimal("1"), sale_tax_percentage=Decimal("0"),
        )
        return await invoice_for(db_session, admin_user, job, [costing_id])

    async def test_partial_then_full_payment(self, db_session, admin_user, job, add_line):
        invoice = await self._thousand_invoice(db_session, admin_user, job, add_line)
        assert invoice.amount == Decimal("1000.00")

        invoice, receipt = await apply_payment(
            db_session, INVOICE, admin_user, invoice.id,
            amount=Decimal("400.00"), payment_date=date(2026, 3, 20),
        )
        assert invoice.payment_status == PaymentStatus.PARTIALLY_PAID
        assert invoice.paid_amount == Decimal("400.00")
        assert invoice.balance_amount == Decimal("600.00")
        assert receipt.receipt_number == "RVAE26001"
        assert receipt.invoice_id == invoice.id

        invoice, receipt = await apply_payment(
            db_session, INVOICE, admin_user, invoice.id,
            amount=Decimal("600.00"), payment_date=date(2026, 3, 25),
        )
        await db_session.commit()
        assert invoice.payment_status == PaymentStatus.PAID
        assert invoice.balance_amount == Decimal("0.00")
        assert receipt.receipt_number == "RVAE26002"

        receipts = (await db_session.execute(
            select(Receipt).where(Receipt.invoice_id == invoice.id)
        )).scalars().all()
        assert sum(r.amount for r in receipts) == invoice.paid_amount

    async def test_overpayment_is_rejected(self, db_session, admin_user, job, add_line):
        invoice = await self._thousand_invoice(db_session, admin_user, job, add_line)

        with pytest.raises(BusinessLogicError) as exc:
            await apply_payment(db_session, INVOICE, admin_user, invoice.id, amount=Decimal("1000.01"))
        assert exc.value.error_code == "PAYMENT_EXCEEDS_BALANCE"

    async def test_vendor_payment_voucher(self, db_session, admin_user, job, add_line):
        costing_id = await add_line()
        purchase = await generate_document(
            db_session, PURCHASE_INVOICE, admin_user,
            shipment_id=job.shipment_id, party_id=job.vendor_id,
            costing_ids=[costing_id], invoice_date=INVOICE_DATE,
        )
        await db_session.commit()

        purchase, voucher = await apply_payment(
            db_session, PURCHASE_INVOICE, admin_user, purchase.id,
            amount=Decimal("550.50"), payment_date=date(2026, 3, 12),
        )
        assert purchase.payment_status == PaymentStatus.PAID
        assert voucher.voucher_number == "PVAE26001"
        assert voucher.vendor_id == job.vendor_id

    async def test_closed_survives_later_payment(self, db_session, admin_user, job, add_line):
        invoice = await self._thousand_invoice(db_session, admin_user, job, add_line)
        await close_document(db_session, INVOICE, admin_user, invoice.id)

        invoice, _ = await apply_payment(db_session, INVOICE, admin_user, invoice.id, amount=Decimal("1000"))
        assert invoice.payment_status == PaymentStatus.CLOSED
        assert invoice.balance_amount == Decimal("0")
