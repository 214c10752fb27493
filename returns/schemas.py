"""
Request and response models for the returns HTTP layer.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


# =============================================================================
# REQUESTS
# =============================================================================

class ReturnRequestDTO(BaseModel):
    """Open a return request."""
    user_id: int
    order_id: int
    product_id: int
    return_policy: str = Field(..., min_length=1)
    reason: str = ""


class UpdateSerialNumberDTO(BaseModel):
    serial_number: str = Field(..., min_length=1)


class TechnicalReviewDTO(BaseModel):
    """Technical review decision, e.g. "Return Good" or "ReturnGood"."""
    process: str
    feedback: Optional[str] = None


class CloseRequestDTO(BaseModel):
    feedback: Optional[str] = None


class UpdateItemStatusDTO(BaseModel):
    status: str


class ProductDTO(BaseModel):
    """Add or edit a catalogue product."""
    name: str = Field(..., min_length=1)
    price: float = Field(..., ge=0)
    description: str = ""


# =============================================================================
# RESPONSES
# =============================================================================

class ErrorModel(BaseModel):
    """Error body returned for every workflow error."""
    status_code: int
    message: str
    kind: str


class TransactionResponse(BaseModel):
    transaction_id: str
    request_id: str
    transaction_type: str
    payment_date: Optional[str] = None
    amount: float


class ProductResponse(BaseModel):
    product_id: int
    name: str
    price: float
    description: str


class ProductItemResponse(BaseModel):
    item_id: int
    product_id: int
    serial_number: str
    status: str


class ReturnRequestResponse(BaseModel):
    request_id: str
    user_id: int
    order_id: int
    product_id: int
    serial_number: Optional[str] = None
    return_policy: str
    reason: str
    feedback: Optional[str] = None
    status: str
    process: Optional[str] = None
    request_date: Optional[str] = None
    closed_date: Optional[str] = None
    closed_by: Optional[int] = None
    transactions: List[TransactionResponse] = Field(default_factory=list)
    product: Optional[Dict[str, Any]] = None
    order: Optional[Dict[str, Any]] = None
