"""
Derived document status.

Frappe exposes submittable documents as docstatus plus completion
percentages. The UI wants one label, e.g. "To Receive and Bill".
"""

from typing import Any

DRAFT = 0
SUBMITTED = 1
CANCELLED = 2


def _pct(value: Any) -> float:
    try:
        return float(value or 0)
    except (TypeError, ValueError):
        return 0.0


def derive_status(
    docstatus: int | None,
    first_pct: Any,
    second_pct: Any,
    first_action: str,
    second_action: str,
    fallback: str | None = None,
) -> str:
    """
    Map docstatus and two completion percentages to a display label.

    docstatus 0 -> "Draft", 2 -> "Cancelled". For submitted documents:
    both >= 100 -> "Completed"; both < 100 -> "To {first} and {second}";
    only first < 100 -> "To {first}"; only second < 100 -> "To {second}".
    Missing percentages count as 0. Unknown docstatus values return
    fallback, or "Draft" when there is none.
    """
    if docstatus == DRAFT:
        return "Draft"
    if docstatus == CANCELLED:
        return "Cancelled"
    if docstatus != SUBMITTED:
        return fallback or "Draft"

    first = _pct(first_pct)
    second = _pct(second_pct)

    if first >= 100 and second >= 100:
        return "Completed"
    if first < 100 and second < 100:
        return f"To {first_action} and {second_action}"
    if first < 100:
        return f"To {first_action}"
    if second < 100:
        return f"To {second_action}"
    return "Submitted"


def purchase_order_status(doc: dict[str, Any]) -> str:
    return derive_status(
        doc.get("docstatus"),
        doc.get("per_received"),
        doc.get("per_billed"),
        "Receive",
        "Bill",
        fallback=doc.get("status"),
    )


def sales_order_status(doc: dict[str, Any]) -> str:
    return derive_status(
        doc.get("docstatus"),
        doc.get("per_delivered"),
        doc.get("per_billed"),
        "Deliver",
        "Bill",
        fallback=doc.get("status"),
    )
