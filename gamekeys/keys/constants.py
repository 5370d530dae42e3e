from gamekeys.common.logging_setup import get_logger

logger = get_logger("gamekeys.keys")

KEY_STATUSES = ("all", "available", "sold")
MAX_KEYS_PER_BATCH = 5000
