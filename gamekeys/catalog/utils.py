import uuid
from fastapi import HTTPException, status
from gamekeys.schema.full_schema import Game


def validate_game_pid(game_public_id: str) -> uuid.UUID:
    try:
        return uuid.UUID(game_public_id)
    except (ValueError, TypeError):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Game not found")


def localized(game: Game, field: str, lang: str):
    # missing translations fall back to the default text
    if lang in ("ge", "ru"):
        val = getattr(game, f"{field}_{lang}", None)
        if val:
            return val
    return getattr(game, field)


def matches_platforms(game: Game, platforms) -> bool:
    if not platforms:
        return True
    wanted = {p.strip().lower() for p in platforms if p and p.strip()}
    if not wanted:
        return True
    return any((p or "").lower() in wanted for p in (game.platform or []))


def serialize_game(game: Game, lang: str = "en") -> dict:
    return {
        "id": str(game.public_id),
        "title": localized(game, "title", lang),
        "description": localized(game, "description", lang),
        "price": game.price,
        "original_price": game.original_price,
        "image_url": game.image_url,
        "category": game.category,
        "platform": list(game.platform or []),
        "is_featured": game.is_featured,
        "rating": game.rating,
        "created_at": game.created_at,
    }


def serialize_game_admin(game: Game) -> dict:
    out = serialize_game(game)
    out.update({
        "title": game.title,
        "description": game.description,
        "title_ge": game.title_ge,
        "title_ru": game.title_ru,
        "description_ge": game.description_ge,
        "description_ru": game.description_ru,
        "is_active": game.is_active,
        "updated_at": game.updated_at,
    })
    return out
