"""Purchase Order and Purchase Receipt documents."""

from collections.abc import Sequence
from datetime import date
from typing import Any

from engine.errors import MissingParameter
from engine.models import to_amount
from engine.status import purchase_order_status


def build_purchase_order(
    *,
    supplier: str | None,
    items: Sequence[dict[str, Any]],
    company: str,
    today: date,
    transaction_date: str | None = None,
    schedule_date: str | None = None,
) -> dict[str, Any]:
    """Draft Purchase Order. Item schedule dates default to the order's."""
    if not supplier or not items:
        raise MissingParameter("Supplier and Items are required")

    transaction_date = transaction_date or today.isoformat()
    item_schedule = schedule_date or transaction_date

    return {
        "doctype": "Purchase Order",
        "supplier": supplier,
        "transaction_date": transaction_date,
        "schedule_date": schedule_date,
        "company": company,
        "items": [
            {
                "item_code": item.get("item_code"),
                "qty": item.get("qty"),
                "rate": item.get("rate"),
                "schedule_date": item_schedule,
                "warehouse": item.get("warehouse"),
            }
            for item in items
        ],
        "docstatus": 0,
    }


def build_purchase_receipt(
    *,
    supplier: str | None,
    items: Sequence[dict[str, Any]],
    company: str,
    today: date,
    posting_date: str | None = None,
) -> dict[str, Any]:
    """Draft Purchase Receipt with line amounts computed as qty * rate."""
    if not supplier or not items:
        raise MissingParameter("Supplier and Items are required")

    processed = []
    for item in items:
        qty = to_amount(item.get("qty"), "qty")
        rate = to_amount(item.get("rate"), "rate")
        processed.append(
            {
                "doctype": "Purchase Receipt Item",
                "item_code": item.get("item_code"),
                "qty": qty,
                "rate": rate,
                "amount": qty * rate,
                "warehouse": item.get("warehouse"),
                "purchase_order": item.get("purchase_order"),
                "po_detail": item.get("po_detail"),
            }
        )

    return {
        "doctype": "Purchase Receipt",
        "supplier": supplier,
        "posting_date": posting_date or today.isoformat(),
        "company": company,
        "items": processed,
        "docstatus": 0,
    }


def shape_purchase_order(doc: dict[str, Any]) -> dict[str, Any]:
    return {
        "name": doc.get("name"),
        "supplier": doc.get("supplier"),
        "supplier_name": doc.get("supplier_name"),
        "transaction_date": doc.get("transaction_date"),
        "schedule_date": doc.get("schedule_date"),
        "total": doc.get("total"),
        "grand_total": doc.get("grand_total"),
        "currency": doc.get("currency"),
        "status": doc.get("status"),
        "derived_status": purchase_order_status(doc),
        "docstatus": doc.get("docstatus"),
        "per_received": doc.get("per_received") or 0,
        "per_billed": doc.get("per_billed") or 0,
        "company": doc.get("company"),
        "items": doc.get("items") or [],
        "creation": doc.get("creation"),
        "modified": doc.get("modified"),
        "owner": doc.get("owner"),
    }


def shape_purchase_receipt(doc: dict[str, Any]) -> dict[str, Any]:
    return {
        "name": doc.get("name"),
        "supplier": doc.get("supplier"),
        "supplier_name": doc.get("supplier_name"),
        "posting_date": doc.get("posting_date"),
        "items": doc.get("items") or [],
        "company": doc.get("company"),
        "docstatus": doc.get("docstatus"),
        "purchase_order": doc.get("purchase_order"),
        "creation": doc.get("creation"),
        "modified": doc.get("modified"),
    }
