from gamekeys.common.logging_setup import get_logger

logger = get_logger("gamekeys.user")
