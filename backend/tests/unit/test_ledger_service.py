"""
Tests for client balance postings and the petty cash book.

Sign convention: a positive balance is a receivable for customers and a
payable for suppliers.
"""
import pytest
from datetime import date
from decimal import Decimal

from millstock.exceptions import InvalidStateError, NotFoundError, ValidationError
from millstock.models.client import ClientLedgerEntry
from millstock.services.integrity_service import check_client_balances
from millstock.services.ledger_service import (
    LedgerService,
    create_petty_cash,
    get_client_cash_flow,
    get_client_ledger,
    get_daily_cash_summary,
    post_ledger,
    resolve_role,
    signed_cash_delta,
    update_petty_cash,
    void_petty_cash,
)


def _balance(db, client):
    return LedgerService(db).get_balance(client.id)


class TestSignTable:

    @pytest.mark.parametrize("role,transaction_type,expected", [
        ("customer", "cash_in", Decimal("-100")),
        ("customer", "cash_out", Decimal("100")),
        ("supplier", "cash_in", Decimal("100")),
        ("supplier", "cash_out", Decimal("-100")),
    ])
    def test_signed_cash_delta(self, role, transaction_type, expected):
        assert signed_cash_delta(role, transaction_type, Decimal("100")) == expected

    def test_unknown_transaction_type(self):
        with pytest.raises(ValidationError):
            signed_cash_delta("customer", "refund", Decimal("1"))


class TestResolveRole:

    def test_single_role_clients_use_their_type(self, supplier, customer):
        assert resolve_role(supplier, None, "manual") == "supplier"
        assert resolve_role(customer, None, "purchase_order") == "customer"

    def test_mismatched_role_rejected(self, customer):
        with pytest.raises(ValidationError):
            resolve_role(customer, "supplier", "manual")

    def test_both_client_defaults_by_reference(self, trader):
        assert resolve_role(trader, None, "purchase_order") == "supplier"
        assert resolve_role(trader, None, "sales_order") == "customer"
        assert resolve_role(trader, None, "manual") == "customer"
        assert resolve_role(trader, "supplier", "manual") == "supplier"


class TestPostLedger:

    def test_post_updates_balance_and_appends_entry(self, db_session, customer):
        entry = post_ledger(db_session, customer.id, Decimal("500"), {"description": "Opening balance"})

        assert _balance(db_session, customer) == Decimal("500")
        assert entry.entry_type == "manual"
        assert entry.balance_after == Decimal("500")
        assert customer.balance == Decimal("500")

    def test_entries_record_running_balance(self, db_session, supplier):
        post_ledger(db_session, supplier.id, 100)
        post_ledger(db_session, supplier.id, -30)

        entries = get_client_ledger(db_session, supplier.id)
        assert [e.balance_after for e in entries] == [Decimal("100"), Decimal("70")]

    def test_zero_amount_rejected(self, db_session, customer):
        with pytest.raises(ValidationError):
            post_ledger(db_session, customer.id, 0)

    def test_missing_client(self, db_session):
        with pytest.raises(NotFoundError):
            post_ledger(db_session, 9999, 10)
        assert db_session.query(ClientLedgerEntry).count() == 0


class TestPettyCash:

    def test_customer_cash_in_reduces_receivable(self, db_session, customer):
        post_ledger(db_session, customer.id, 1000)
        petty_cash = create_petty_cash(
            db_session, client_id=customer.id, transaction_type="cash_in", amount=Decimal("400")
        )

        assert petty_cash.transaction_number == "PC-000001"
        assert petty_cash.counterparty_role == "customer"
        assert petty_cash.payment_status == "cleared"
        assert _balance(db_session, customer) == Decimal("600")

    def test_supplier_cash_out_reduces_payable(self, db_session, supplier):
        post_ledger(db_session, supplier.id, 1000)
        create_petty_cash(db_session, client_id=supplier.id, transaction_type="cash_out", amount=250)
        assert _balance(db_session, supplier) == Decimal("750")

    def test_both_client_follows_counterparty_role(self, db_session, trader):
        create_petty_cash(
            db_session, client_id=trader.id, transaction_type="cash_out", amount=100,
            counterparty_role="supplier",
        )
        create_petty_cash(db_session, client_id=trader.id, transaction_type="cash_in", amount=40)
        # supplier cash_out -100, customer cash_in -40
        assert _balance(db_session, trader) == Decimal("-140")

    def test_unlinked_transaction_has_no_balance_effect(self, db_session, customer):
        petty_cash = create_petty_cash(
            db_session, transaction_type="cash_out", amount=75, reference_type="salary"
        )
        assert petty_cash.client_id is None
        assert db_session.query(ClientLedgerEntry).count() == 0

    def test_record_cash_without_client(self, db_session):
        petty_cash = LedgerService(db_session).record_cash("cash_in", Decimal("40"))
        db_session.commit()
        assert petty_cash.client_id is None
        assert petty_cash.counterparty_role is None
        assert petty_cash.amount == Decimal("40")
        assert petty_cash.payment_method == "cash"
        assert db_session.query(ClientLedgerEntry).count() == 0

    def test_cheque_is_pending(self, db_session, customer):
        petty_cash = create_petty_cash(
            db_session, client_id=customer.id, transaction_type="cash_in", amount=10,
            payment_method="cheque", cheque_number="000123",
        )
        assert petty_cash.payment_status == "pending"

    @pytest.mark.parametrize("fields", [
        {"transaction_type": "refund", "amount": 10},
        {"transaction_type": "cash_in", "amount": 0},
        {"transaction_type": "cash_in", "amount": 10, "payment_method": "card"},
        {"transaction_type": "cash_in", "amount": 10, "reference_type": "gift"},
    ])
    def test_invalid_fields_rejected(self, db_session, customer, fields):
        with pytest.raises(ValidationError):
            create_petty_cash(db_session, client_id=customer.id, **fields)
        assert _balance(db_session, customer) == Decimal("0")

    def test_update_reverses_and_reposts(self, db_session, customer):
        petty_cash = create_petty_cash(db_session, client_id=customer.id, transaction_type="cash_in", amount=100)
        updated = update_petty_cash(db_session, petty_cash.id, amount=Decimal("150"))

        assert updated.amount == Decimal("150")
        assert _balance(db_session, customer) == Decimal("-150")
        entry_types = [e.entry_type for e in get_client_ledger(db_session, customer.id)]
        assert entry_types == ["petty_cash", "reversal", "petty_cash"]
        assert check_client_balances(db_session) == []

    def test_update_can_move_to_another_client(self, db_session, customer, supplier):
        petty_cash = create_petty_cash(db_session, client_id=customer.id, transaction_type="cash_out", amount=60)
        update_petty_cash(db_session, petty_cash.id, client_id=supplier.id)

        assert _balance(db_session, customer) == Decimal("0")
        assert _balance(db_session, supplier) == Decimal("-60")

    def test_update_unknown_field_rejected(self, db_session, customer):
        petty_cash = create_petty_cash(db_session, client_id=customer.id, transaction_type="cash_in", amount=10)
        with pytest.raises(ValidationError):
            update_petty_cash(db_session, petty_cash.id, is_void=True)

    def test_void_reverses_effect(self, db_session, supplier):
        petty_cash = create_petty_cash(db_session, client_id=supplier.id, transaction_type="cash_out", amount=90)
        voided = void_petty_cash(db_session, petty_cash.id)

        assert voided.is_void is True
        assert _balance(db_session, supplier) == Decimal("0")
        with pytest.raises(InvalidStateError):
            void_petty_cash(db_session, petty_cash.id)
        with pytest.raises(InvalidStateError):
            update_petty_cash(db_session, petty_cash.id, amount=5)


class TestCashReports:

    def test_client_cash_flow(self, db_session, customer):
        post_ledger(db_session, customer.id, 1000)
        create_petty_cash(db_session, client_id=customer.id, transaction_type="cash_in", amount=300,
                          transaction_date=date(2026, 2, 1))
        create_petty_cash(db_session, client_id=customer.id, transaction_type="cash_out", amount=50,
                          transaction_date=date(2026, 2, 2))
        voided = create_petty_cash(db_session, client_id=customer.id, transaction_type="cash_in", amount=999,
                                   transaction_date=date(2026, 2, 3))
        void_petty_cash(db_session, voided.id)

        flow = get_client_cash_flow(db_session, customer.id)
        assert flow["total_cash_in"] == Decimal("300")
        assert flow["total_cash_out"] == Decimal("50")
        assert flow["net_cash"] == Decimal("250")
        assert flow["balance"] == Decimal("750")
        assert len(flow["transactions"]) == 2

        ranged = get_client_cash_flow(db_session, customer.id, start_date=date(2026, 2, 2))
        assert len(ranged["transactions"]) == 1

    def test_daily_summary_by_method(self, db_session, customer):
        day = date(2026, 3, 10)
        create_petty_cash(db_session, client_id=customer.id, transaction_type="cash_in", amount=100,
                          transaction_date=day)
        create_petty_cash(db_session, client_id=customer.id, transaction_type="cash_in", amount=200,
                          transaction_date=day, payment_method="bank")
        create_petty_cash(db_session, transaction_type="cash_out", amount=30, transaction_date=day)
        create_petty_cash(db_session, transaction_type="cash_out", amount=500, transaction_date=date(2026, 3, 11))

        summary = get_daily_cash_summary(db_session, day)
        assert summary["transaction_count"] == 3
        assert summary["total_cash_in"] == Decimal("300")
        assert summary["total_cash_out"] == Decimal("30")
        assert summary["net_cash"] == Decimal("270")
        assert summary["by_payment_method"]["bank"]["cash_in"] == Decimal("200")
        assert summary["by_payment_method"]["cash"]["cash_out"] == Decimal("30")
