from enum import Enum
from typing import Annotated, Optional

from pydantic import BaseModel, StringConstraints

RequiredText = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


class PaymentMethod(str, Enum):
    COD = "COD"
    Online = "Online"


class OrderDetails(BaseModel):
    name: RequiredText
    phone: RequiredText
    address: RequiredText
    city: RequiredText
    state: RequiredText
    landmark: Optional[str] = ""
    pincode: RequiredText
    payment_method: PaymentMethod


class OrderPlacedResponse(BaseModel):
    message: str
    payment_method: PaymentMethod
    order: OrderDetails
    payment_session_id: Optional[str] = None
    popup: Optional[dict] = None
