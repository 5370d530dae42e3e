from typing import List, Optional
from pydantic import BaseModel, Field


class CartItem(BaseModel):
    """Snapshot of a game as the shopper saw it, plus how many copies they want."""
    game_id: str
    title: str
    price: int = Field(ge=0)  # cents, display only
    image_url: Optional[str] = None
    quantity: int = Field(default=1, ge=1)


class CartSnapshot(BaseModel):
    items: List[CartItem] = Field(default_factory=list)
