"""
Selling API Router - sales orders.
"""

from fastapi import APIRouter, Depends, HTTPException

from api.auth import require_auth
from api.dependencies import get_frappe_client
from api.response_models import ApiResponse, ok
from engine.frappe_client import FrappeClient
from engine.selling import shape_sales_order

selling_router = APIRouter(tags=["Selling"], dependencies=[Depends(require_auth)])


@selling_router.get("/sales-orders/{name}", response_model=ApiResponse)
def get_sales_order(name: str, frappe: FrappeClient = Depends(get_frappe_client)) -> dict:
    """Sales order with items and derived delivery/billing status."""
    doc = frappe.get_document("Sales Order", name)
    if not doc:
        raise HTTPException(status_code=404, detail="Sales Order not found")
    return ok(salesOrder=shape_sales_order(doc))
