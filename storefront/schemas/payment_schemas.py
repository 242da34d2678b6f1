from enum import Enum
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from storefront.schemas.order_schemas import RequiredText


class TradeType(str, Enum):
    local = "local"
    international = "international"


class LocalMethod(str, Enum):
    upi = "upi"
    bank = "bank"
    card = "card"


# ---------- storefront sub-forms ----------

class UpiForm(BaseModel):
    method: Literal["upi"] = "upi"
    upi_id: RequiredText

    def backend_fields(self) -> dict:
        return {"upiId": self.upi_id}


class BankForm(BaseModel):
    method: Literal["bank"] = "bank"
    account_number: RequiredText
    ifsc_code: RequiredText
    account_name: RequiredText

    def backend_fields(self) -> dict:
        return {
            "accountNumber": self.account_number,
            "ifscCode": self.ifsc_code,
            "accountName": self.account_name,
        }


class CardForm(BaseModel):
    method: Literal["card"] = "card"
    card_number: RequiredText
    expiry_date: RequiredText
    cvv: RequiredText
    name_on_card: RequiredText

    def backend_fields(self) -> dict:
        # cvv stays on this side
        return {
            "cardNumber": self.card_number,
            "expiryDate": self.expiry_date,
            "nameOnCard": self.name_on_card,
        }


LocalPaymentForm = Annotated[
    Union[UpiForm, BankForm, CardForm],
    Field(discriminator="method"),
]

LOCAL_FORMS = {
    LocalMethod.upi: UpiForm,
    LocalMethod.bank: BankForm,
    LocalMethod.card: CardForm,
}


class TradeTypeUpdate(BaseModel):
    trade_type: TradeType


class LocalMethodUpdate(BaseModel):
    method: Optional[LocalMethod] = None


# ---------- backend wire format ----------

class LocalPaymentRequest(BaseModel):
    """Body of POST /api/local-payment. Every field is optional on the wire."""

    model_config = ConfigDict(populate_by_name=True)

    method: str = ""
    amount: float = 0
    upi_id: str = Field("", alias="upiId")
    account_number: str = Field("", alias="accountNumber")
    ifsc_code: str = Field("", alias="ifscCode")
    account_name: str = Field("", alias="accountName")
    card_number: str = Field("", alias="cardNumber")
    expiry_date: str = Field("", alias="expiryDate")
    name_on_card: str = Field("", alias="nameOnCard")


class LocalPaymentResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool
    order_id: Optional[str] = Field(None, alias="orderId")
    message: Optional[str] = None
    error: Optional[str] = None


# ---------- session view ----------

class PaymentSessionView(BaseModel):
    id: str
    checkout_id: Optional[str] = None
    status: str
    trade_type: TradeType
    local_method: Optional[LocalMethod] = None
    time_left: int
    countdown: str
    timer_active: bool
    qr_visible: bool
    loading: bool
    confirmed: bool
    order_id: Optional[str] = None
    error: Optional[str] = None
    backend_available: bool
    banner: Optional[str] = None
    wallet_address: str
    amount_inr: int
    amount_usdt: str
    popup: Optional[dict] = None
