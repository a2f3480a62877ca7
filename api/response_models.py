"""
Shared Pydantic models for API requests and responses.

Every endpoint answers with the same envelope:

    {"success": true, "data": {...}}
    {"success": false, "error": "...", "details": "...", "status_code": 404}

Request bodies are validated here, at the edge, before anything reaches
the engine.

Usage:
    from api.response_models import ApiResponse, ok

    @router.get("/endpoint", response_model=ApiResponse)
    def my_endpoint():
        return ok(items=[...])
"""

from typing import Any

from pydantic import BaseModel, Field

from engine.models import PaymentReference

# ==== Envelopes ====


class ApiResponse(BaseModel):
    """Success envelope."""

    success: bool = Field(default=True, description="Always true on success")
    data: dict[str, Any] = Field(default_factory=dict, description="Response payload")


class ErrorResponse(BaseModel):
    """Error envelope."""

    success: bool = Field(default=False)
    error: str = Field(description="Short error category")
    details: str = Field(description="User-facing message")
    status_code: int = Field(description="HTTP status code")


def ok(**payload: Any) -> dict[str, Any]:
    """Wrap a payload in the success envelope."""
    return {"success": True, "data": payload}


class HealthResponse(BaseModel):
    """Health check result."""

    status: str = Field(description="healthy or unhealthy")
    erp_reachable: bool
    erp_user: str | None = None
    error: str | None = None
    timestamp: str = Field(description="ISO timestamp")


# ==== Payments ====


class ReferenceIn(BaseModel):
    """A payment reference as sent by the payment form."""

    reference_doctype: str
    reference_name: str
    outstanding_amount: float = 0.0
    allocated_amount: float = 0.0
    total_amount: float | None = None

    def to_reference(self) -> PaymentReference:
        return PaymentReference(
            reference_doctype=self.reference_doctype,
            reference_name=self.reference_name,
            outstanding_amount=self.outstanding_amount,
            allocated_amount=self.allocated_amount,
            total_amount=self.total_amount,
        )


class AllocationRequest(BaseModel):
    """Body of POST /api/accounting/payments/allocate."""

    paid_amount: float = 0.0
    references: list[ReferenceIn] = Field(default_factory=list)


class PaymentCreateRequest(BaseModel):
    """
    Body of POST /api/accounting/payments.

    Required fields are checked by the payment builder so that a missing
    field produces the same 400 as the rest of the API.
    """

    payment_type: str | None = None
    party_type: str | None = None
    party: str | None = None
    paid_amount: float | None = None
    posting_date: str | None = None
    mode_of_payment: str | None = None
    company: str | None = None
    party_account: str | None = None
    paid_to: str | None = None
    paid_from: str | None = None
    reference_no: str | None = None
    reference_date: str | None = None
    references: list[ReferenceIn] = Field(default_factory=list)


# ==== Documents ====


class DocumentUpdateRequest(BaseModel):
    """Status change for a submittable document (invoice, order)."""

    action: str | None = None
    status: str | None = None
    docstatus: int | None = None

    @property
    def wants_submit(self) -> bool:
        return self.action == "submit" or self.status == "Submitted" or self.docstatus == 1


class LineItemIn(BaseModel):
    item_code: str
    qty: float
    rate: float | None = None
    warehouse: str | None = None
    purchase_order: str | None = None
    po_detail: str | None = None


class PurchaseOrderCreateRequest(BaseModel):
    supplier: str | None = None
    items: list[LineItemIn] = Field(default_factory=list)
    transaction_date: str | None = None
    schedule_date: str | None = None
    company: str | None = None


class PurchaseReceiptCreateRequest(BaseModel):
    supplier: str | None = None
    items: list[LineItemIn] = Field(default_factory=list)
    posting_date: str | None = None
    company: str | None = None


class ItemCreateRequest(BaseModel):
    """New Item. Fields beyond these are passed through to the ERP."""

    item_name: str | None = None
    stock_uom: str | None = None
    item_code: str | None = None
    item_group: str | None = None
    is_stock_item: int | None = None

    model_config = {"extra": "allow"}


class ItemPriceCreateRequest(BaseModel):
    """New Item Price. Fields beyond these are passed through to the ERP."""

    item_code: str | None = None
    price_list: str | None = None
    price_list_rate: float | None = None
    valid_from: str | None = None

    model_config = {"extra": "allow"}


class DocumentFields(BaseModel):
    """Free-form field update passed through to the ERP."""

    model_config = {"extra": "allow"}
