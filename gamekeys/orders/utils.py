import hashlib
import json
from dataclasses import dataclass
from typing import Iterator, List


@dataclass(frozen=True)
class Unit:
    """One purchased copy: a cart line of quantity N expands into N of these."""
    game_id: str


@dataclass
class Allocation:
    order_id: int
    key_id: int
    title: str
    key_value: str
    amount: int


def expand_lines(lines) -> Iterator[Unit]:
    # line order first, then repetition order
    for line in lines:
        for _ in range(line.quantity):
            yield Unit(game_id=line.game_id)


def cart_request_hash(lines) -> str:
    """Stable digest of a cart so a reused idempotency key with a different cart is caught."""
    merged = {}
    for line in lines:
        merged[line.game_id] = merged.get(line.game_id, 0) + int(line.quantity)
    raw = json.dumps(sorted(merged.items()), separators=(",", ":"))
    return hashlib.sha256(raw.encode()).hexdigest()


def receipt_from(allocations: List[Allocation]) -> List[dict]:
    return [{"title": a.title, "key": a.key_value} for a in allocations]
