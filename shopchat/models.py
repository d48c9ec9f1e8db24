"""Pydantic models for request/response payloads and store records."""
from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class ChatRequest(BaseModel):
    message: str = Field(..., description="Free-text message from the user")
    userId: str | None = Field(default=None, description="Optional user id sent by the client")


class ChatResponse(BaseModel):
    reply: str


class CatalogItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    brand: str | None = None
    model: str | None = None
    engine: str | None = None
    year: str | None = None
    description: str | None = None
    price: Decimal = Decimal("0")
    stock: int = Field(default=0, ge=0)
    average_rating: float = 0.0
    review_count: int = 0
    image_url: str | None = None

    @field_validator("year", mode="before")
    @classmethod
    def _year_as_text(cls, value: object) -> object:
        if isinstance(value, int):
            return str(value)
        return value


class ProductRating(BaseModel):
    product_id: str
    name: str
    average_rating: float = 0.0
    review_count: int = 0


class OrderItem(BaseModel):
    product_id: str | None = None
    name: str | None = None
    quantity: int = 1
    unit_price: Decimal = Decimal("0")


class Order(BaseModel):
    id: str
    date: datetime | None = None
    status: str = "pending"
    payment_status: str = "pending"
    user_id: str | None = None
    items: list[OrderItem] = Field(default_factory=list)
    total: Decimal | None = None

    @model_validator(mode="after")
    def _compute_total(self) -> "Order":
        if self.total is None:
            self.total = sum((item.unit_price * item.quantity for item in self.items), Decimal("0"))
        return self


class UserRef(BaseModel):
    id: str
    email: str
