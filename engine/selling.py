"""Sales Invoice and Sales Order projections."""

from typing import Any

from engine.status import sales_order_status


def shape_sales_invoice(doc: dict[str, Any]) -> dict[str, Any]:
    return {
        "name": doc.get("name"),
        "customer": doc.get("customer"),
        "customer_name": doc.get("customer_name"),
        "posting_date": doc.get("posting_date"),
        "due_date": doc.get("due_date"),
        "grand_total": doc.get("grand_total"),
        "outstanding_amount": doc.get("outstanding_amount"),
        "status": doc.get("status"),
        "docstatus": doc.get("docstatus"),
        "currency": doc.get("currency"),
        "company": doc.get("company"),
        "items": doc.get("items") or [],
    }


def shape_sales_order(doc: dict[str, Any]) -> dict[str, Any]:
    return {
        "name": doc.get("name"),
        "customer": doc.get("customer"),
        "customer_name": doc.get("customer_name"),
        "transaction_date": doc.get("transaction_date"),
        "delivery_date": doc.get("delivery_date"),
        "grand_total": doc.get("grand_total"),
        "currency": doc.get("currency"),
        "status": doc.get("status"),
        "derived_status": sales_order_status(doc),
        "docstatus": doc.get("docstatus"),
        "per_delivered": doc.get("per_delivered") or 0,
        "per_billed": doc.get("per_billed") or 0,
        "company": doc.get("company"),
        "items": doc.get("items") or [],
    }
