"""
Stock API Router - items, item prices, item groups and purchase receipts.

Single-record updates and deletes take the record name as a `name`
query parameter; lookups by name use a path parameter.
"""

import logging
from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import Response

from api.auth import require_auth
from api.dependencies import get_frappe_client, get_settings
from api.response_models import (
    ApiResponse,
    DocumentFields,
    ItemCreateRequest,
    ItemPriceCreateRequest,
    PurchaseReceiptCreateRequest,
    ok,
)
from engine.errors import MissingParameter
from engine.frappe_client import FrappeClient, FrappeError
from engine.purchasing import build_purchase_receipt, shape_purchase_receipt
from engine.stock import (
    ITEM_FIELDS,
    ITEM_GROUP_FIELDS,
    ITEM_GROUP_OPTION_SOURCES,
    ITEM_PRICE_FIELDS,
    as_options,
    item_filters,
    item_group_filters,
    item_price_filters,
    items_to_csv,
    slugify_item_code,
)
from erplib.config import Settings

logger = logging.getLogger(__name__)

stock_router = APIRouter(tags=["Stock"], dependencies=[Depends(require_auth)])

ITEM = "Item"
ITEM_PRICE = "Item Price"
ITEM_GROUP = "Item Group"
PURCHASE_RECEIPT = "Purchase Receipt"


def _require_name(name: str | None, message: str) -> str:
    if not name:
        raise MissingParameter(message)
    return name


# ==== Items ====


@stock_router.get("/item", response_model=ApiResponse)
def list_items(
    name: str | None = Query(None, description="Matches item name or code"),
    group: str | None = Query(None),
    status: str | None = Query(None, description="Enabled, Disabled or all"),
    limit: int = Query(100, ge=1, le=5000),
    frappe: FrappeClient = Depends(get_frappe_client),
) -> dict:
    items = frappe.get_doc_list(
        ITEM,
        fields=ITEM_FIELDS,
        filters=item_filters(name, group, status),
        order_by=("modified", "desc"),
        limit=limit,
    )
    return ok(items=items)


@stock_router.post("/item", response_model=ApiResponse)
def create_item(body: ItemCreateRequest, frappe: FrappeClient = Depends(get_frappe_client)) -> dict:
    """Create an item. item_code defaults to a slug of item_name."""
    if not body.item_name or not body.stock_uom:
        raise MissingParameter("Missing required fields: item_name and stock_uom")

    data = body.model_dump(exclude_none=True)
    data["item_code"] = body.item_code or slugify_item_code(body.item_name)
    data.setdefault("is_stock_item", 1)

    frappe.create_doc(ITEM, data)
    logger.info(f"Created item {data['item_code']}")
    return ok(item=frappe.get_doc(ITEM, data["item_code"]))


@stock_router.put("/item", response_model=ApiResponse)
def update_item(
    body: DocumentFields,
    name: str | None = Query(None),
    frappe: FrappeClient = Depends(get_frappe_client),
) -> dict:
    name = _require_name(name, "Item name (name parameter) is required")
    frappe.update_doc(ITEM, name, body.model_dump())
    return ok(item=frappe.get_doc(ITEM, name))


@stock_router.delete("/item", response_model=ApiResponse)
def delete_item(
    name: str | None = Query(None),
    frappe: FrappeClient = Depends(get_frappe_client),
) -> dict:
    name = _require_name(name, "Item name (name parameter) is required")
    frappe.delete_doc(ITEM, name)
    logger.info(f"Deleted item {name}")
    return ok(message=f"Item {name} deleted successfully")


@stock_router.get("/item/options", response_model=ApiResponse)
def item_options(frappe: FrappeClient = Depends(get_frappe_client)) -> dict:
    groups = frappe.get_doc_list(ITEM_GROUP, fields=["name"], limit=1000)
    uoms = frappe.get_doc_list("UOM", fields=["name"], limit=1000)
    return ok(
        item_groups=[g["name"] for g in groups],
        uoms=[u["name"] for u in uoms],
    )


@stock_router.get("/item/export")
def export_items(
    name: str | None = Query(None),
    group: str | None = Query(None),
    status: str | None = Query(None),
    limit: int = Query(5000, ge=1, le=5000),
    frappe: FrappeClient = Depends(get_frappe_client),
) -> Response:
    """Items as a CSV download, same filters as the list."""
    items = frappe.get_doc_list(
        ITEM,
        fields=ITEM_FIELDS,
        filters=item_filters(name, group, status),
        order_by=("modified", "desc"),
        limit=limit,
    )
    filename = f"items-{date.today().isoformat()}.csv"
    return Response(
        content=items_to_csv(items),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@stock_router.get("/item/{item_name}", response_model=ApiResponse)
def get_item_by_name(item_name: str, frappe: FrappeClient = Depends(get_frappe_client)) -> dict:
    """Look an item up by its display name (not its code)."""
    items = frappe.get_doc_list(
        ITEM,
        fields=ITEM_FIELDS,
        filters=[["item_name", "=", item_name]],
        limit=1,
    )
    if not items:
        raise HTTPException(status_code=404, detail=f"Item with name {item_name} not found")
    return ok(item=items[0])


# ==== Item prices ====


@stock_router.get("/item-price", response_model=ApiResponse)
def list_item_prices(
    item_code: str | None = Query(None),
    price_list: str | None = Query(None),
    customer: str | None = Query(None),
    supplier: str | None = Query(None),
    valid: str | None = Query(None, description="'true' keeps prices valid today"),
    limit: int = Query(100, ge=1, le=5000),
    frappe: FrappeClient = Depends(get_frappe_client),
) -> dict:
    filters = item_price_filters(
        date.today(),
        item_code=item_code,
        price_list=price_list,
        customer=customer,
        supplier=supplier,
        valid_only=valid == "true",
    )
    prices = frappe.get_doc_list(
        ITEM_PRICE,
        fields=ITEM_PRICE_FIELDS,
        filters=filters,
        order_by=("modified", "desc"),
        limit=limit,
    )
    return ok(item_prices=prices)


@stock_router.post("/item-price", response_model=ApiResponse)
def create_item_price(
    body: ItemPriceCreateRequest,
    frappe: FrappeClient = Depends(get_frappe_client),
) -> dict:
    """Create an item price. valid_from defaults to today."""
    if not body.item_code or not body.price_list or body.price_list_rate is None:
        raise MissingParameter("Missing required fields: item_code, price_list, and price_list_rate")

    data = body.model_dump(exclude_none=True)
    data.setdefault("valid_from", date.today().isoformat())

    created = frappe.create_doc(ITEM_PRICE, data) or {}
    if not created.get("name"):
        raise HTTPException(status_code=502, detail="Failed to create Item Price")
    return ok(item_price=frappe.get_doc(ITEM_PRICE, created["name"]))


@stock_router.put("/item-price", response_model=ApiResponse)
def update_item_price(
    body: DocumentFields,
    name: str | None = Query(None),
    frappe: FrappeClient = Depends(get_frappe_client),
) -> dict:
    name = _require_name(name, "Item price name (name parameter) is required")
    frappe.update_doc(ITEM_PRICE, name, body.model_dump())
    return ok(item_price=frappe.get_doc(ITEM_PRICE, name))


@stock_router.delete("/item-price", response_model=ApiResponse)
def delete_item_price(
    name: str | None = Query(None),
    frappe: FrappeClient = Depends(get_frappe_client),
) -> dict:
    name = _require_name(name, "Item price name (name parameter) is required")
    frappe.delete_doc(ITEM_PRICE, name)
    return ok(message=f"Item Price {name} deleted successfully")


@stock_router.get("/item-price/options", response_model=ApiResponse)
def item_price_options(frappe: FrappeClient = Depends(get_frappe_client)) -> dict:
    price_lists = frappe.get_doc_list(
        "Price List",
        fields=["name", "currency", "buying", "selling"],
        filters=[["enabled", "=", 1]],
        order_by=("name", "asc"),
        limit=100,
    )
    items = frappe.get_doc_list(
        ITEM,
        fields=["name", "item_name", "stock_uom"],
        filters=[["disabled", "=", 0]],
        order_by=("item_name", "asc"),
        limit=500,
    )
    customers = frappe.get_doc_list(
        "Customer", fields=["name"], filters=[["disabled", "=", 0]], order_by=("name", "asc"), limit=200
    )
    suppliers = frappe.get_doc_list(
        "Supplier", fields=["name"], filters=[["disabled", "=", 0]], order_by=("name", "asc"), limit=200
    )
    uoms = frappe.get_doc_list("UOM", fields=["name"], order_by=("name", "asc"), limit=100)
    return ok(
        price_lists=price_lists,
        items=items,
        customers=[c["name"] for c in customers],
        suppliers=[s["name"] for s in suppliers],
        uoms=[u["name"] for u in uoms],
    )


@stock_router.get("/settings/item-price/{name}", response_model=ApiResponse)
def get_item_price(name: str, frappe: FrappeClient = Depends(get_frappe_client)) -> dict:
    item_price = frappe.get_doc(ITEM_PRICE, name)
    if not item_price:
        raise HTTPException(status_code=404, detail=f'Item Price "{name}" not found')
    return ok(item_price=item_price)


# ==== Item groups ====


@stock_router.get("/settings/item-group", response_model=ApiResponse)
def list_item_groups(
    view: str | None = Query(None, description="'tree' orders by tree position"),
    name: str | None = Query(None),
    parent: str | None = Query(None),
    is_group: str | None = Query(None),
    frappe: FrappeClient = Depends(get_frappe_client),
) -> dict:
    order_by = ("lft", "asc") if view == "tree" else ("modified", "desc")
    groups = frappe.get_doc_list(
        ITEM_GROUP,
        fields=ITEM_GROUP_FIELDS,
        filters=item_group_filters(name, parent, is_group),
        order_by=order_by,
        limit=1000,
    )
    return ok(item_groups=groups)


@stock_router.post("/settings/item-group", response_model=ApiResponse)
def create_item_group(body: DocumentFields, frappe: FrappeClient = Depends(get_frappe_client)) -> dict:
    data = body.model_dump()
    group_name = _require_name(data.get("item_group_name"), "item_group_name is required")
    frappe.create_doc(ITEM_GROUP, data)
    logger.info(f"Created item group {group_name}")
    return ok(item_group=frappe.get_doc(ITEM_GROUP, group_name))


@stock_router.put("/settings/item-group", response_model=ApiResponse)
def update_item_group(
    body: DocumentFields,
    name: str | None = Query(None),
    frappe: FrappeClient = Depends(get_frappe_client),
) -> dict:
    name = _require_name(name, "Name parameter is required")
    frappe.update_doc(ITEM_GROUP, name, body.model_dump())
    return ok(item_group=frappe.get_doc(ITEM_GROUP, name))


@stock_router.delete("/settings/item-group", response_model=ApiResponse)
def delete_item_group(
    name: str | None = Query(None),
    frappe: FrappeClient = Depends(get_frappe_client),
) -> dict:
    """Delete an item group that has no child groups and no items."""
    name = _require_name(name, "Name parameter is required")

    children = frappe.get_doc_list(ITEM_GROUP, filters=[["parent_item_group", "=", name]], limit=1)
    if children:
        raise HTTPException(
            status_code=409,
            detail="Cannot delete item group with child groups. "
            "Please delete or move child groups first.",
        )

    items = frappe.get_doc_list(ITEM, filters=[["item_group", "=", name]], limit=1)
    if items:
        raise HTTPException(
            status_code=409,
            detail="Cannot delete item group that is used in items. "
            "Please update or delete those items first.",
        )

    frappe.delete_doc(ITEM_GROUP, name)
    logger.info(f"Deleted item group {name}")
    return ok(message=f'Item Group "{name}" deleted successfully')


@stock_router.get("/settings/item-group/options", response_model=ApiResponse)
def item_group_options(frappe: FrappeClient = Depends(get_frappe_client)) -> dict:
    """Dropdown values for the item group form."""
    options: dict = {
        "item_groups": frappe.get_doc_list(
            ITEM_GROUP,
            fields=["name", "item_group_name", "is_group"],
            order_by=("item_group_name", "asc"),
        )
    }
    for key, (doctype, filters, label_field) in ITEM_GROUP_OPTION_SOURCES.items():
        fields = ["name", label_field] if label_field else ["name"]
        rows = frappe.get_doc_list(
            doctype,
            fields=fields,
            filters=filters,
            order_by=(label_field or "name", "asc"),
        )
        options[key] = as_options(rows, label_field)
    return ok(**options)


@stock_router.get("/settings/item-group/{name}", response_model=ApiResponse)
def get_item_group(name: str, frappe: FrappeClient = Depends(get_frappe_client)) -> dict:
    return ok(item_group=frappe.get_doc(ITEM_GROUP, name))


# ==== Purchase receipts ====


@stock_router.get("/purchase-receipts", response_model=ApiResponse)
def list_purchase_receipts(
    supplier: str | None = Query(None),
    status: str | None = Query(None),
    purchase_order: str | None = Query(None),
    limit: int = Query(100, ge=1, le=500),
    frappe: FrappeClient = Depends(get_frappe_client),
) -> dict:
    """Purchase receipts, newest first. Receipts that fail to load are skipped."""
    filters = []
    if supplier:
        filters.append(["supplier", "=", supplier])
    if status:
        filters.append(["status", "=", status])
    if purchase_order:
        filters.append(["purchase_order", "=", purchase_order])

    rows = frappe.get_doc_list(
        PURCHASE_RECEIPT,
        fields=["name"],
        filters=filters,
        order_by=("posting_date", "desc"),
        limit=limit,
    )

    receipts = []
    for row in rows:
        try:
            receipts.append(shape_purchase_receipt(frappe.get_doc(PURCHASE_RECEIPT, row["name"])))
        except FrappeError as e:
            logger.warning(f"Error fetching receipt {row.get('name')}: {e.message}")
    return ok(purchaseReceipts=receipts)


@stock_router.post("/purchase-receipts", response_model=ApiResponse)
def create_purchase_receipt(
    body: PurchaseReceiptCreateRequest,
    frappe: FrappeClient = Depends(get_frappe_client),
    settings: Settings = Depends(get_settings),
) -> dict:
    doc = build_purchase_receipt(
        supplier=body.supplier,
        items=[item.model_dump() for item in body.items],
        company=body.company or settings.default_company,
        today=date.today(),
        posting_date=body.posting_date,
    )
    result = frappe.insert(doc)
    if not result:
        raise HTTPException(status_code=502, detail="Failed to create Purchase Receipt")
    logger.info(f"Created purchase receipt {result.get('name')}", extra={"supplier": body.supplier})
    return ok(purchaseReceipt=result)
