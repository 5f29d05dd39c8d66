"""Request and response schemas of the HTTP API."""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class PropertyResponse(BaseModel):
    """An approved listing."""

    country: str
    city: str
    street: str
    number: str
    description: str = ""
    contract: Optional[str] = None
    listprice: Optional[float] = None
    currency: Optional[str] = None
    status: str
    images: List[str] = []


class ApprovalRequest(BaseModel):
    """Ask for a listing to be evaluated for publication."""

    property_id: str = Field(..., min_length=1, description="country/city/street/number")


class ContractRequest(BaseModel):
    """Create (POST) or approve (PUT) the contract of a property."""

    property_id: str = Field(..., min_length=1)
    address: Dict[str, Any] = {}
    seller_name: Optional[str] = None


class EnqueuedResponse(BaseModel):
    """A command accepted for asynchronous processing."""

    message_id: str
    status: str = "enqueued"
