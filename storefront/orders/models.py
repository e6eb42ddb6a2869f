# module storefront.orders.models
"""Modèles de la feature Commandes.
- Modèles pydantic pour les entrées (ligne de panier, adresse, métadonnées client).
- Enums fermés pour le moyen de paiement et le statut de commande.
- PaymentRecord: ce que le chemin de paiement sait au moment du commit
  (statut, identifiants processeur, facture, totaux éventuellement fournis par le processeur).
"""
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Optional, Type, TypeVar
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, EmailStr, Field, ValidationError, field_validator

from storefront.errors import InvalidInput, InvalidPaymentMethod

COD_SENTINEL = "cash_on_delivery"
MOBILE_MONEY_SENTINEL = "mobile_money"

ModelT = TypeVar("ModelT", bound=BaseModel)


class PaymentMethod(str, Enum):
    CARD = "card"
    MOBILE_MONEY = "mobile_money"
    COD = "cod"

    @classmethod
    def parse(cls, value: Any) -> "PaymentMethod":
        """Tag absent -> carte. Accepte les anciens tags (stripe, bkash, cash-on-delivery)."""
        if isinstance(value, cls):
            return value
        if value is None or str(value).strip() == "":
            return cls.CARD
        tag = str(value).strip().lower()
        tag = _PAYMENT_METHOD_ALIASES.get(tag, tag)
        try:
            return cls(tag)
        except ValueError:
            raise InvalidPaymentMethod(f"Invalid payment method: {value}")


_PAYMENT_METHOD_ALIASES = {
    "stripe": "card",
    "bkash": "mobile_money",
    "mobile-money": "mobile_money",
    "cash-on-delivery": "cod",
    "cash_on_delivery": "cod",
}


class OrderStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"


def generate_order_number(now: Optional[datetime] = None) -> str:
    """Numéro de commande 'ORD-YYYYMMDD-XXXXXX' (unicité par entropie seulement)."""
    now = now or datetime.now(timezone.utc)
    return f"ORD-{now.strftime('%Y%m%d')}-{uuid4().hex[:6].upper()}"


class Address(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, coerce_numbers_to_str=True)

    name: str = Field(min_length=1)
    address: str = Field(min_length=1)
    city: str = Field(min_length=1)
    state: str = Field(min_length=1)
    zip: str = Field(min_length=1)


class CartLine(BaseModel):
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    product_id: str = Field(alias="productId", min_length=1)
    quantity: int = Field(gt=0)
    # Prix unitaire connu du processeur (chemin webhook); ignoré au recalcul
    unit_price: Optional[Decimal] = Field(default=None, exclude=True)


class OrderMetadata(BaseModel):
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    order_number: str = Field(default_factory=generate_order_number, alias="orderNumber")
    customer_name: str = Field(alias="customerName", min_length=1)
    customer_email: EmailStr = Field(alias="customerEmail")
    user_id: Optional[str] = Field(default=None, alias="clerkUserId")
    address: Optional[Address] = None
    payment_method: PaymentMethod = Field(default=PaymentMethod.CARD, alias="paymentMethod")

    @field_validator("order_number", mode="before")
    @classmethod
    def _order_number_or_generate(cls, v: Any) -> str:
        return str(v).strip() if v and str(v).strip() else generate_order_number()

    @field_validator("payment_method", mode="before")
    @classmethod
    def _parse_payment_method(cls, v: Any) -> PaymentMethod:
        return PaymentMethod.parse(v)


def parse_model(model_cls: Type[ModelT], data: Any, message: str) -> ModelT:
    """Valide `data` avec pydantic; une erreur de validation devient InvalidInput(message)."""
    try:
        return model_cls.model_validate(data if data is not None else {})
    except ValidationError as e:
        raise InvalidInput(message) from e


@dataclass(frozen=True)
class ProcessorTotals:
    """Totaux déjà calculés (et encaissés) par le processeur de paiement."""
    total_price: Decimal
    amount_discount: Decimal
    currency: str


@dataclass(frozen=True)
class PaymentRecord:
    method: PaymentMethod
    status: OrderStatus
    checkout_session_id: str = COD_SENTINEL
    payment_intent_id: str = COD_SENTINEL
    customer_id: Optional[str] = None
    invoice: Optional[Dict[str, Any]] = None
    # None => recalcul depuis les produits courants
    totals: Optional[ProcessorTotals] = None

    @classmethod
    def cash_on_delivery(cls) -> "PaymentRecord":
        return cls(method=PaymentMethod.COD, status=OrderStatus.PENDING)

    @classmethod
    def mobile_money(cls, payment_id: Optional[str] = None) -> "PaymentRecord":
        ref = payment_id or MOBILE_MONEY_SENTINEL
        return cls(
            method=PaymentMethod.MOBILE_MONEY,
            status=OrderStatus.PENDING,
            checkout_session_id=ref,
            payment_intent_id=ref,
        )
