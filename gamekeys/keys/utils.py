from typing import List, Tuple


def parse_key_batch(raw: str) -> Tuple[List[str], List[str]]:
    """Split pasted text into unique keys, in input order.

    Returns (keys, duplicates_within_batch). Blank lines and surrounding
    whitespace are dropped.
    """
    seen = set()
    keys, dupes = [], []
    for line in (raw or "").splitlines():
        key = line.strip()
        if not key:
            continue
        if key in seen:
            dupes.append(key)
            continue
        seen.add(key)
        keys.append(key)
    return keys, dupes


def serialize_key(key, game_title=None) -> dict:
    return {
        "id": str(key.public_id),
        "game_title": game_title,
        "key_value": key.key_value,
        "is_sold": key.is_sold,
        "sold_to": key.sold_to,
        "sold_at": key.sold_at,
        "created_at": key.created_at,
    }
