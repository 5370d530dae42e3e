from typing import Iterable, List, Optional
from gamekeys.cart.models import CartItem, CartSnapshot


class CartState:
    """Client-held cart keyed by game id.

    Purely local: nothing here talks to the store. `checkout_lines()` is the
    explicit hand-off to the checkout endpoint.
    """

    def __init__(self, items: Optional[Iterable[CartItem]] = None):
        self._items: dict[str, CartItem] = {}
        for it in items or []:
            self.add(it, quantity=it.quantity)

    def add(self, game: CartItem, quantity: int = 1) -> CartItem:
        if quantity < 1:
            raise ValueError("quantity must be at least 1")
        existing = self._items.get(game.game_id)
        if existing is not None:
            existing.quantity += quantity
            return existing
        item = game.model_copy(update={"quantity": quantity})
        self._items[item.game_id] = item
        return item

    def update_quantity(self, game_id: str, quantity: int) -> None:
        if game_id not in self._items:
            return
        if quantity <= 0:
            self.remove(game_id)
            return
        self._items[game_id].quantity = quantity

    def remove(self, game_id: str) -> None:
        self._items.pop(game_id, None)

    def clear(self) -> None:
        self._items.clear()

    @property
    def items(self) -> List[CartItem]:
        return list(self._items.values())

    @property
    def total_items(self) -> int:
        return sum(it.quantity for it in self._items.values())

    @property
    def total_price(self) -> int:
        return sum(it.price * it.quantity for it in self._items.values())

    def __len__(self):
        return len(self._items)

    def __bool__(self):
        return bool(self._items)

    def to_json(self) -> str:
        return CartSnapshot(items=self.items).model_dump_json()

    @classmethod
    def from_json(cls, raw: Optional[str]) -> "CartState":
        # a corrupt or missing local copy starts an empty cart
        if not raw:
            return cls()
        try:
            snap = CartSnapshot.model_validate_json(raw)
        except ValueError:
            return cls()
        return cls(snap.items)

    def checkout_lines(self) -> List[dict]:
        return [
            {"game_id": it.game_id, "title": it.title, "price": it.price, "image_url": it.image_url, "quantity": it.quantity}
            for it in self._items.values()
        ]
