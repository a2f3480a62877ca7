"""
Accounting API Router - reports, payments and sales invoices.

Provides endpoints for:
- Accounts receivable / payable aging
- General ledger with running balance
- Payment entries: listing, outstanding invoices, allocation, draft creation
- Sales invoice lookup and submission
"""

import logging
from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query

from api.auth import require_auth
from api.dependencies import get_frappe_client, get_settings
from api.response_models import (
    AllocationRequest,
    ApiResponse,
    DocumentUpdateRequest,
    PaymentCreateRequest,
    ok,
)
from engine.aging import DEFAULT_RANGES, aging_totals, build_aging, parse_report_date, validate_ranges
from engine.allocation import allocate, total_allocated, unallocated_amount
from engine.errors import InvalidArgument, MissingParameter
from engine.frappe_client import FrappeClient
from engine.ledger import GL_FIELDS, gl_filters, ledger_totals, with_running_balance
from engine.models import (
    INVOICE_DOCTYPE,
    PARTY_ACCOUNT_FIELD,
    PARTY_NAME_FIELD,
    GLEntry,
    OutstandingInvoice,
    PaymentReference,
    require_party_type,
)
from engine.payments import build_payment_entry, shape_payment_entry
from engine.selling import shape_sales_invoice
from erplib.config import REPORT_FETCH_LIMIT, Settings

logger = logging.getLogger(__name__)

accounting_router = APIRouter(tags=["Accounting"], dependencies=[Depends(require_auth)])


# ==== Reports ====


@accounting_router.get("/reports/aging", response_model=ApiResponse)
def aging_report(
    party_type: str | None = Query(None, description="Customer or Supplier"),
    report_date: str | None = Query(None, description="ISO date; defaults to today"),
    range1: int = Query(DEFAULT_RANGES[0], description="Upper bound of bucket 1 (days)"),
    range2: int = Query(DEFAULT_RANGES[1], description="Upper bound of bucket 2 (days)"),
    range3: int = Query(DEFAULT_RANGES[2], description="Upper bound of bucket 3 (days)"),
    frappe: FrappeClient = Depends(get_frappe_client),
) -> dict:
    """
    Outstanding balances per party, bucketed by invoice age.

    Reads submitted Sales Invoices (Customer) or Purchase Invoices
    (Supplier) with an outstanding amount.
    """
    party_type = require_party_type(party_type)
    as_of = parse_report_date(report_date)
    ranges = validate_ranges((range1, range2, range3))

    party_field = party_type.lower()
    rows = frappe.get_doc_list(
        INVOICE_DOCTYPE[party_type],
        fields=[
            "name",
            "posting_date",
            party_field,
            PARTY_NAME_FIELD[party_type],
            "outstanding_amount",
            "currency",
        ],
        filters=[["docstatus", "=", 1], ["outstanding_amount", ">", 0]],
        limit=REPORT_FETCH_LIMIT,
    )
    invoices = [OutstandingInvoice.from_doc(row, party_type) for row in rows]
    entries = build_aging(invoices, party_type, as_of, ranges)

    logger.info(
        f"Aging report: {len(invoices)} invoices, {len(entries)} parties",
        extra={"party_type": party_type, "report_date": as_of.isoformat()},
    )
    return ok(
        data=[entry.to_dict() for entry in entries],
        totals=aging_totals(entries),
        report_date=as_of.isoformat(),
        ranges=list(ranges),
    )


@accounting_router.get("/reports/gl", response_model=ApiResponse)
def general_ledger(
    from_date: str | None = Query(None),
    to_date: str | None = Query(None),
    account: str | None = Query(None),
    party_type: str | None = Query(None),
    party: str | None = Query(None),
    frappe: FrappeClient = Depends(get_frappe_client),
) -> dict:
    filters = gl_filters(from_date, to_date, account, party_type, party)
    rows = frappe.get_doc_list(
        "GL Entry",
        fields=GL_FIELDS,
        filters=filters,
        order_by=("posting_date", "asc"),
        limit=REPORT_FETCH_LIMIT,
    )
    entries = with_running_balance(GLEntry.from_doc(row) for row in rows)
    return ok(entries=[entry.to_dict() for entry in entries], totals=ledger_totals(entries))


# ==== Payments ====


@accounting_router.get("/payments", response_model=ApiResponse)
def list_payments(
    limit: int = Query(100, ge=1, le=1000),
    frappe: FrappeClient = Depends(get_frappe_client),
) -> dict:
    """Latest payment entries first."""
    rows = frappe.get_doc_list(
        "Payment Entry",
        fields=[
            "name",
            "payment_type",
            "party_type",
            "party",
            "party_name",
            "posting_date",
            "mode_of_payment",
            "paid_amount",
            "docstatus",
            "company",
        ],
        order_by=("posting_date", "desc"),
        limit=limit,
    )
    return ok(payments=[shape_payment_entry(row) for row in rows])


@accounting_router.get("/payments/outstanding", response_model=ApiResponse)
def outstanding_invoices(
    party_type: str | None = Query(None),
    party: str | None = Query(None),
    paid_amount: float | None = Query(None, description="Pre-allocate this amount"),
    frappe: FrappeClient = Depends(get_frappe_client),
) -> dict:
    """
    Submitted invoices the party still owes (or is owed), oldest first.

    Each invoice also comes back as a payment reference; with paid_amount
    the references are allocated first-come-first-served.
    """
    if not party_type or not party:
        raise MissingParameter("Party Type and Party are required")
    party_type = require_party_type(party_type)

    account_field = PARTY_ACCOUNT_FIELD[party_type]
    rows = frappe.get_doc_list(
        INVOICE_DOCTYPE[party_type],
        fields=["name", "posting_date", "grand_total", "outstanding_amount", "currency", account_field],
        filters=[
            [party_type.lower(), "=", party],
            ["docstatus", "=", 1],
            ["outstanding_amount", ">", 0],
        ],
        order_by=("posting_date", "asc"),
    )
    invoices = [{**row, "party_account": row.get(account_field)} for row in rows]

    references = [PaymentReference.from_invoice(row, party_type) for row in rows]
    if paid_amount is not None:
        references = allocate(paid_amount, references)

    return ok(
        invoices=invoices,
        references=[ref.to_dict() for ref in references],
        total_allocated=total_allocated(references),
        unallocated=unallocated_amount(paid_amount or 0.0, references),
    )


@accounting_router.get("/payments/modes", response_model=ApiResponse)
def payment_modes(frappe: FrappeClient = Depends(get_frappe_client)) -> dict:
    modes = frappe.get_doc_list("Mode of Payment", fields=["name", "type"])
    return ok(modes=modes)


@accounting_router.get("/payments/parties", response_model=ApiResponse)
def payment_parties(
    party_type: str | None = Query(None),
    frappe: FrappeClient = Depends(get_frappe_client),
) -> dict:
    party_type = require_party_type(party_type)
    parties = frappe.get_doc_list(
        party_type,
        fields=["name", PARTY_NAME_FIELD[party_type]],
        order_by=("creation", "desc"),
        limit=1000,
    )
    return ok(parties=parties)


@accounting_router.post("/payments/allocate", response_model=ApiResponse)
def allocate_payment(body: AllocationRequest) -> dict:
    """Recompute allocations for a paid amount. Nothing is sent to the ERP."""
    references = allocate(body.paid_amount, [ref.to_reference() for ref in body.references])
    return ok(
        references=[ref.to_dict() for ref in references],
        total_allocated=total_allocated(references),
        unallocated=unallocated_amount(body.paid_amount, references),
    )


@accounting_router.post("/payments", response_model=ApiResponse)
def create_payment(
    body: PaymentCreateRequest,
    frappe: FrappeClient = Depends(get_frappe_client),
    settings: Settings = Depends(get_settings),
) -> dict:
    """Create a draft Payment Entry."""
    doc = build_payment_entry(
        payment_type=body.payment_type,
        party_type=body.party_type,
        party=body.party,
        paid_amount=body.paid_amount,
        references=[ref.to_reference() for ref in body.references],
        company=body.company or settings.default_company,
        today=date.today(),
        posting_date=body.posting_date,
        mode_of_payment=body.mode_of_payment,
        party_account=body.party_account,
        paid_to=body.paid_to,
        paid_from=body.paid_from,
        reference_no=body.reference_no,
        reference_date=body.reference_date,
    )
    payment = frappe.insert(doc)
    logger.info(
        f"Created draft payment {payment.get('name') if payment else '?'}",
        extra={"party": body.party, "paid_amount": body.paid_amount},
    )
    return ok(payment=payment)


# ==== Sales invoices ====


def _get_sales_invoice(frappe: FrappeClient, name: str) -> dict:
    doc = frappe.get_document("Sales Invoice", name)
    if not doc:
        raise HTTPException(status_code=404, detail="Sales invoice not found")
    return doc


@accounting_router.get("/sales/{name}", response_model=ApiResponse)
def get_sales_invoice(name: str, frappe: FrappeClient = Depends(get_frappe_client)) -> dict:
    return ok(salesInvoice=shape_sales_invoice(_get_sales_invoice(frappe, name)))


@accounting_router.put("/sales/{name}", response_model=ApiResponse)
def update_sales_invoice(
    name: str,
    body: DocumentUpdateRequest,
    frappe: FrappeClient = Depends(get_frappe_client),
) -> dict:
    """Submit a draft sales invoice. Other updates are rejected."""
    if not body.wants_submit:
        raise InvalidArgument("Invalid update request")

    frappe.submit(_get_sales_invoice(frappe, name))
    logger.info(f"Submitted sales invoice {name}")
    return ok(salesInvoice=shape_sales_invoice(_get_sales_invoice(frappe, name)))
