"""
Tests for document builders and projections: payments, purchasing,
selling, stock filters and the general ledger.
"""

from datetime import date

import pytest

from engine.errors import InvalidArgument, MissingParameter
from engine.ledger import gl_filters, ledger_totals, with_running_balance
from engine.models import GLEntry, OutstandingInvoice, PaymentReference, require_party_type, to_amount
from engine.payments import build_payment_entry
from engine.purchasing import build_purchase_order, build_purchase_receipt, shape_purchase_order
from engine.selling import shape_sales_order
from engine.stock import as_options, item_filters, item_price_filters, items_to_csv, slugify_item_code

TODAY = date(2025, 6, 30)


def _ref(name, allocated):
    return PaymentReference("Sales Invoice", name, outstanding_amount=100, allocated_amount=allocated)


# =============================================================================
# MODELS
# =============================================================================


class TestModels:
    def test_require_party_type(self):
        assert require_party_type("Supplier") == "Supplier"
        with pytest.raises(MissingParameter, match="Party Type is required"):
            require_party_type(None)
        with pytest.raises(InvalidArgument):
            require_party_type("Employee")

    def test_to_amount(self):
        assert to_amount(None) == 0.0
        assert to_amount("12.5") == 12.5
        with pytest.raises(InvalidArgument):
            to_amount("twelve")

    def test_outstanding_invoice_from_doc(self):
        inv = OutstandingInvoice.from_doc(
            {
                "name": "PINV-1",
                "posting_date": "2025-06-01",
                "supplier": "S1",
                "outstanding_amount": "40",
                "currency": "EUR",
            },
            "Supplier",
        )

        assert inv.party == "S1"
        assert inv.party_name == "S1"
        assert inv.posting_date == date(2025, 6, 1)
        assert inv.outstanding_amount == 40.0

    def test_outstanding_invoice_without_party(self):
        with pytest.raises(InvalidArgument):
            OutstandingInvoice.from_doc({"name": "SINV-1", "posting_date": "2025-06-01"}, "Customer")

    def test_reference_from_invoice(self):
        ref = PaymentReference.from_invoice(
            {"name": "SINV-1", "outstanding_amount": 60, "grand_total": 100}, "Customer"
        )
        assert ref.reference_doctype == "Sales Invoice"
        assert ref.allocated_amount == 0.0
        assert ref.total_amount == 100.0


# =============================================================================
# PAYMENTS
# =============================================================================


class TestBuildPaymentEntry:
    def _build(self, **overrides):
        kwargs = {
            "payment_type": "Receive",
            "party_type": "Customer",
            "party": "C1",
            "paid_amount": 80,
            "company": "Pana ERP",
            "today": TODAY,
        }
        kwargs.update(overrides)
        return build_payment_entry(**kwargs)

    def test_defaults(self):
        doc = self._build()

        assert doc["doctype"] == "Payment Entry"
        assert doc["posting_date"] == "2025-06-30"
        assert doc["mode_of_payment"] == "Cash"
        assert doc["received_amount"] == 80
        assert doc["source_exchange_rate"] == 1
        assert doc["target_exchange_rate"] == 1
        assert doc["company"] == "Pana ERP"
        assert "paid_from" not in doc

    def test_missing_fields(self):
        with pytest.raises(MissingParameter, match="Missing required fields"):
            self._build(party=None)
        with pytest.raises(MissingParameter):
            self._build(paid_amount=0)

    def test_invalid_payment_type(self):
        with pytest.raises(InvalidArgument):
            self._build(payment_type="Internal Transfer")

    def test_party_account_on_receive_is_paid_from(self):
        doc = self._build(party_account="Debtors - PE")
        assert doc["paid_from"] == "Debtors - PE"

    def test_party_account_on_pay_is_paid_to(self):
        doc = self._build(payment_type="Pay", party_type="Supplier", party_account="Creditors - PE")
        assert doc["paid_to"] == "Creditors - PE"

    def test_explicit_accounts_override(self):
        doc = self._build(party_account="Debtors - PE", paid_from="Other - PE", paid_to="Cash - PE")
        assert doc["paid_from"] == "Other - PE"
        assert doc["paid_to"] == "Cash - PE"

    def test_only_allocated_references_are_sent(self):
        doc = self._build(references=[_ref("SINV-1", 50), _ref("SINV-2", 0), _ref("SINV-3", 30)])

        assert doc["references"] == [
            {"reference_doctype": "Sales Invoice", "reference_name": "SINV-1", "allocated_amount": 50},
            {"reference_doctype": "Sales Invoice", "reference_name": "SINV-3", "allocated_amount": 30},
        ]


# =============================================================================
# PURCHASING / SELLING
# =============================================================================


class TestPurchasing:
    def test_purchase_order_schedule_defaults(self):
        doc = build_purchase_order(
            supplier="S1",
            items=[{"item_code": "mug", "qty": 2, "rate": 3}],
            company="Pana ERP",
            today=TODAY,
        )

        assert doc["transaction_date"] == "2025-06-30"
        assert doc["items"][0]["schedule_date"] == "2025-06-30"
        assert doc["docstatus"] == 0

    def test_purchase_order_requires_items(self):
        with pytest.raises(MissingParameter, match="Supplier and Items are required"):
            build_purchase_order(supplier="S1", items=[], company="X", today=TODAY)

    def test_receipt_amounts(self):
        doc = build_purchase_receipt(
            supplier="S1",
            items=[{"item_code": "mug", "qty": "3", "rate": 2.5}, {"item_code": "cup", "qty": 1}],
            company="Pana ERP",
            today=TODAY,
        )

        assert [i["amount"] for i in doc["items"]] == [7.5, 0.0]
        assert doc["items"][0]["doctype"] == "Purchase Receipt Item"

    def test_shaped_orders_carry_derived_status(self):
        po = shape_purchase_order({"name": "PO-1", "docstatus": 1, "per_received": 100, "per_billed": 100})
        so = shape_sales_order({"name": "SO-1", "docstatus": 2})

        assert po["derived_status"] == "Completed"
        assert so["derived_status"] == "Cancelled"


# =============================================================================
# STOCK
# =============================================================================


class TestStock:
    @pytest.mark.parametrize(
        "name,code",
        [("Red Mug (L)", "red-mug-l"), ("  Big   Box ", "-big-box-"), ("Café 2", "caf-2")],
    )
    def test_slugify(self, name, code):
        assert slugify_item_code(name) == code

    def test_item_filters(self):
        filters = item_filters(name="mug", group="all", status="Disabled")

        assert filters == [
            ["disabled", "=", 1],
            [["item_name", "like", "%mug%"], ["item_code", "like", "%mug%"]],
        ]

    def test_valid_price_filters(self):
        filters = item_price_filters(TODAY, price_list="Standard Selling", valid_only=True)

        assert ["price_list", "=", "Standard Selling"] in filters
        assert ["valid_from", "<=", "2025-06-30"] in filters
        assert [["valid_upto", ">=", "2025-06-30"], ["valid_upto", "is", "not set"]] in filters

    def test_items_to_csv(self):
        csv_text = items_to_csv([{"item_code": "mug", "item_name": "Mug, large", "is_stock_item": 1}])

        lines = csv_text.splitlines()
        assert lines[0].startswith("Item Code,Item Name")
        assert lines[1].startswith('mug,"Mug, large",')
        assert lines[1].endswith(",Yes,Enabled,,")

    def test_as_options_label_fallback(self):
        rows = [{"name": "S1", "supplier_name": "Supplier One"}, {"name": "S2"}]
        assert as_options(rows, "supplier_name") == [
            {"value": "S1", "label": "Supplier One"},
            {"value": "S2", "label": "S2"},
        ]


# =============================================================================
# LEDGER
# =============================================================================


class TestLedger:
    def test_dates_required(self):
        with pytest.raises(MissingParameter, match="From Date and To Date are required"):
            gl_filters(None, "2025-06-30")

    def test_bad_date(self):
        with pytest.raises(InvalidArgument):
            gl_filters("yesterday", "2025-06-30")

    def test_trailing_text_after_date_is_rejected(self):
        with pytest.raises(InvalidArgument):
            gl_filters("2025-01-31xyz", "2025-06-30")

    def test_dates_are_normalised(self):
        filters = gl_filters(" 2025-01-01 ", "2025-06-30 23:59:59")
        assert filters == [["posting_date", ">=", "2025-01-01"], ["posting_date", "<=", "2025-06-30"]]

    def test_optional_filters(self):
        filters = gl_filters("2025-01-01", "2025-06-30", account="Debtors - PE", party="C1")
        assert filters[2:] == [["account", "=", "Debtors - PE"], ["party", "=", "C1"]]

    def test_running_balance_and_totals(self):
        rows = [
            {"name": "GL-1", "posting_date": "2025-01-01", "debit": 100, "credit": 0},
            {"name": "GL-2", "posting_date": "2025-01-02", "debit": 0, "credit": 30},
            {"name": "GL-3", "posting_date": "2025-01-03", "debit": 5, "credit": 0},
        ]

        entries = with_running_balance(GLEntry.from_doc(r) for r in rows)

        assert [e.balance for e in entries] == [100, 70, 75]
        assert ledger_totals(entries) == {"debit": 105, "credit": 30, "balance": 75}
        assert entries[0].to_dict()["posting_date"] == "2025-01-01"
