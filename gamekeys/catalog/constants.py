from gamekeys.common.logging_setup import get_logger

logger = get_logger("gamekeys.catalog")

SUPPORTED_LANGS = ("en", "ge", "ru")
SORT_OPTIONS = ("newest", "price-low", "price-high", "name", "rating")
DEFAULT_PAGE_SIZE = 20
