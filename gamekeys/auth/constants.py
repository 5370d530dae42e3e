from gamekeys.common.logging_setup import get_logger
from gamekeys.schema.full_schema import Role

logger = get_logger("gamekeys.auth")

# every admin route names exactly one of these
GAMES_WRITE = "games:write"
KEYS_READ = "keys:read"
KEYS_WRITE = "keys:write"
ORDERS_READ = "orders:read"
ORDERS_WRITE = "orders:write"
STATS_READ = "stats:read"
USERS_MANAGE = "users:manage"

ROLE_CAPABILITIES = {
    Role.ADMIN: frozenset({GAMES_WRITE, KEYS_READ, KEYS_WRITE, ORDERS_READ, ORDERS_WRITE, STATS_READ, USERS_MANAGE}),
    Role.MODERATOR: frozenset({GAMES_WRITE, KEYS_READ, KEYS_WRITE, ORDERS_READ, STATS_READ}),
    Role.USER: frozenset(),
}
