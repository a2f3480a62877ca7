"""Items, item prices and item groups: filters, defaults and export."""

import csv
import io
import re
from collections.abc import Iterable
from datetime import date
from typing import Any

ITEM_FIELDS = [
    "name",
    "item_code",
    "item_name",
    "stock_uom",
    "item_group",
    "brand",
    "is_stock_item",
    "is_fixed_asset",
    "disabled",
    "creation",
    "modified",
]

ITEM_PRICE_FIELDS = [
    "name",
    "item_code",
    "item_name",
    "price_list",
    "price_list_rate",
    "buying",
    "selling",
    "currency",
    "uom",
    "customer",
    "supplier",
    "batch_no",
    "valid_from",
    "valid_upto",
    "modified",
]

ITEM_GROUP_FIELDS = [
    "name",
    "item_group_name",
    "parent_item_group",
    "is_group",
    "old_parent",
    "lft",
    "rgt",
    "default_price_list",
    "default_warehouse",
    "default_buying_cost_center",
    "default_selling_cost_center",
    "default_expense_account",
    "default_income_account",
    "default_supplier",
    "default_item_tax_template",
    "tax_category",
    "disabled",
    "creation",
    "modified",
]

ITEM_CSV_HEADERS = [
    "Item Code",
    "Item Name",
    "Item Group",
    "Stock UOM",
    "Brand",
    "Is Stock Item",
    "Status",
    "Created",
    "Modified",
]


def slugify_item_code(item_name: str) -> str:
    """Derive an item code from its name: "Red Mug (L)" -> "red-mug-l"."""
    code = re.sub(r"\s+", "-", item_name.lower())
    return re.sub(r"[^a-z0-9-]", "", code)


def item_filters(
    name: str | None = None,
    group: str | None = None,
    status: str | None = None,
) -> list[Any]:
    """
    Filters for the item list.

    group and status are ANDed; "all" means no filter. name matches
    item_name OR item_code.
    """
    filters: list[Any] = []
    if group and group != "all":
        filters.append(["item_group", "=", group])
    if status and status != "all":
        filters.append(["disabled", "=", 1 if status == "Disabled" else 0])
    if name:
        filters.append(
            [
                ["item_name", "like", f"%{name}%"],
                ["item_code", "like", f"%{name}%"],
            ]
        )
    return filters


def item_price_filters(
    today: date,
    item_code: str | None = None,
    price_list: str | None = None,
    customer: str | None = None,
    supplier: str | None = None,
    valid_only: bool = False,
) -> list[Any]:
    """Filters for the item price list; valid_only keeps prices in force today."""
    filters: list[Any] = []
    if item_code:
        filters.append(["item_code", "like", f"%{item_code}%"])
    if price_list and price_list != "all":
        filters.append(["price_list", "=", price_list])
    if customer:
        filters.append(["customer", "=", customer])
    if supplier:
        filters.append(["supplier", "=", supplier])
    if valid_only:
        iso = today.isoformat()
        filters.append(["valid_from", "<=", iso])
        filters.append(
            [
                ["valid_upto", ">=", iso],
                ["valid_upto", "is", "not set"],
            ]
        )
    return filters


def item_group_filters(
    name: str | None = None,
    parent: str | None = None,
    is_group: str | None = None,
) -> list[Any]:
    filters: list[Any] = []
    if name:
        filters.append(["item_group_name", "like", f"%{name}%"])
    if parent:
        filters.append(["parent_item_group", "=", parent])
    if is_group is not None:
        filters.append(["is_group", "=", 1 if is_group == "1" else 0])
    return filters


def items_to_csv(items: Iterable[dict[str, Any]]) -> str:
    """Render items as CSV with a header row."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(ITEM_CSV_HEADERS)
    for item in items:
        writer.writerow(
            [
                item.get("item_code") or "",
                item.get("item_name") or "",
                item.get("item_group") or "",
                item.get("stock_uom") or "",
                item.get("brand") or "",
                "Yes" if item.get("is_stock_item") else "No",
                "Disabled" if item.get("disabled") else "Enabled",
                item.get("creation") or "",
                item.get("modified") or "",
            ]
        )
    return buffer.getvalue()


# ==== Dropdown options ====

# key -> (doctype, filters, label field) for the item group form
ITEM_GROUP_OPTION_SOURCES: dict[str, tuple[str, list[Any], str | None]] = {
    "price_lists": ("Price List", [["enabled", "=", 1]], None),
    "warehouses": ("Warehouse", [["is_group", "=", 0]], None),
    "cost_centers": ("Cost Center", [["is_group", "=", 0]], None),
    "expense_accounts": (
        "Account",
        [["account_type", "=", "Expense Account"], ["is_group", "=", 0]],
        None,
    ),
    "income_accounts": (
        "Account",
        [["account_type", "=", "Income Account"], ["is_group", "=", 0]],
        None,
    ),
    "suppliers": ("Supplier", [["disabled", "=", 0]], "supplier_name"),
    "tax_templates": ("Item Tax Template", [], None),
    "tax_categories": ("Tax Category", [], None),
}


def as_options(rows: Iterable[dict[str, Any]], label_field: str | None = None) -> list[dict[str, Any]]:
    """[{value, label}] pairs for a select box; label falls back to the name."""
    return [
        {
            "value": row.get("name"),
            "label": (row.get(label_field) if label_field else None) or row.get("name"),
        }
        for row in rows
    ]
