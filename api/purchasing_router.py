"""
Purchasing API Router - purchase orders and form options.
"""

import logging
from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query

from api.auth import require_auth
from api.dependencies import get_frappe_client, get_settings
from api.response_models import (
    ApiResponse,
    DocumentUpdateRequest,
    PurchaseOrderCreateRequest,
    ok,
)
from engine.errors import InvalidArgument
from engine.frappe_client import FrappeClient, FrappeError
from engine.purchasing import build_purchase_order, shape_purchase_order
from erplib.config import Settings

logger = logging.getLogger(__name__)

purchasing_router = APIRouter(tags=["Purchasing"], dependencies=[Depends(require_auth)])

DOCTYPE = "Purchase Order"


@purchasing_router.get("/purchase-orders", response_model=ApiResponse)
def list_purchase_orders(
    status: str | None = Query(None),
    supplier: str | None = Query(None),
    name: str | None = Query(None, description="Exact name; overrides other filters"),
    limit: int = Query(50, ge=1, le=500),
    frappe: FrappeClient = Depends(get_frappe_client),
) -> dict:
    """
    Purchase orders, newest first, with their derived status.

    Each order is loaded in full (items included). Orders that fail to
    load are logged and left out.
    """
    if name:
        filters = [["name", "=", name]]
    else:
        filters = []
        if status:
            filters.append(["status", "=", status])
        if supplier:
            filters.append(["supplier", "=", supplier])

    rows = frappe.get_doc_list(
        DOCTYPE,
        fields=["name"],
        filters=filters,
        order_by=("transaction_date", "desc"),
        limit=limit,
    )

    orders = []
    for row in rows:
        try:
            orders.append(shape_purchase_order(frappe.get_doc(DOCTYPE, row["name"])))
        except FrappeError as e:
            logger.warning(f"Error fetching PO {row.get('name')}: {e.message}")
    return ok(purchaseOrders=orders)


@purchasing_router.post("/purchase-orders", response_model=ApiResponse)
def create_purchase_order(
    body: PurchaseOrderCreateRequest,
    frappe: FrappeClient = Depends(get_frappe_client),
    settings: Settings = Depends(get_settings),
) -> dict:
    doc = build_purchase_order(
        supplier=body.supplier,
        items=[item.model_dump() for item in body.items],
        company=body.company or settings.default_company,
        today=date.today(),
        transaction_date=body.transaction_date,
        schedule_date=body.schedule_date,
    )
    result = frappe.insert(doc)
    if not result:
        raise HTTPException(status_code=502, detail="Failed to create Purchase Order")
    logger.info(f"Created purchase order {result.get('name')}", extra={"supplier": body.supplier})
    return ok(purchaseOrder=result)


def _get_purchase_order(frappe: FrappeClient, name: str) -> dict:
    doc = frappe.get_document(DOCTYPE, name)
    if not doc:
        raise HTTPException(status_code=404, detail="Purchase Order not found")
    return doc


@purchasing_router.get("/purchase-orders/{name}", response_model=ApiResponse)
def get_purchase_order(name: str, frappe: FrappeClient = Depends(get_frappe_client)) -> dict:
    return ok(purchaseOrder=shape_purchase_order(_get_purchase_order(frappe, name)))


@purchasing_router.put("/purchase-orders/{name}", response_model=ApiResponse)
def update_purchase_order(
    name: str,
    body: DocumentUpdateRequest,
    frappe: FrappeClient = Depends(get_frappe_client),
) -> dict:
    """Submit a draft purchase order (action: "submit")."""
    if not body.wants_submit:
        raise InvalidArgument("Invalid update request")

    frappe.submit(_get_purchase_order(frappe, name))
    logger.info(f"Submitted purchase order {name}")
    return ok(purchaseOrder=shape_purchase_order(_get_purchase_order(frappe, name)))


@purchasing_router.get("/options", response_model=ApiResponse)
def purchasing_options(frappe: FrappeClient = Depends(get_frappe_client)) -> dict:
    """Suppliers, purchasable items and companies for the order form."""
    suppliers = frappe.call_get(
        "frappe.client.get_list",
        {"doctype": "Supplier", "fields": ["name", "supplier_name"], "limit": 100},
    ) or []
    items = frappe.call_get(
        "frappe.client.get_list",
        {
            "doctype": "Item",
            "fields": [
                "name",
                "item_code",
                "item_name",
                "description",
                "stock_uom",
                "standard_rate",
                "is_stock_item",
            ],
            "filters": [["is_purchase_item", "=", 1]],
            "limit": 100,
        },
    ) or []
    companies = frappe.call_get(
        "frappe.client.get_list",
        {"doctype": "Company", "fields": ["name", "company_name"], "limit": 20},
    ) or []

    return ok(
        options={
            "suppliers": [
                {"name": s.get("name"), "supplier_name": s.get("supplier_name")} for s in suppliers
            ],
            "items": [
                {
                    "name": i.get("name"),
                    "item_code": i.get("item_code"),
                    "item_name": i.get("item_name"),
                    "description": i.get("description") or "",
                    "stock_uom": i.get("stock_uom") or "",
                    "standard_rate": i.get("standard_rate") or 0,
                    "is_stock_item": i.get("is_stock_item") or 0,
                }
                for i in items
            ],
            "companies": [
                {"name": c.get("name"), "company_name": c.get("company_name")} for c in companies
            ],
        }
    )
