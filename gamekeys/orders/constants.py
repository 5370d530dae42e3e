from gamekeys.common.logging_setup import get_logger

logger = get_logger("gamekeys.orders")

IDEMPOTENCY_HEADER = "Idempotency-Key"
ORDER_STATUSES = ("pending", "completed", "failed")
