import uuid
from typing import List, Optional
from pydantic import BaseModel, Field, field_validator
from gamekeys.config.settings import config_settings
from gamekeys.schema.full_schema import OrderStatus


class CheckoutLine(BaseModel):
    game_id: str
    quantity: int = Field(..., ge=1, le=config_settings.CHECKOUT_MAX_LINE_QUANTITY)
    # what the shopper saw, only compared against the stored price
    title: Optional[str] = None
    price: Optional[int] = Field(None, ge=0)
    image_url: Optional[str] = None

    @field_validator("game_id")
    @classmethod
    def canonical_game_id(cls, v: str) -> str:
        # one spelling per game; ids that are not uuids stay as sent and match nothing
        try:
            return str(uuid.UUID(v.strip()))
        except ValueError:
            return v


class CheckoutIn(BaseModel):
    items: List[CheckoutLine] = Field(default_factory=list)


class OrderStatusIn(BaseModel):
    status: OrderStatus
