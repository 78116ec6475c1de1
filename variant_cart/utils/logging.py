# variant_cart/utils/logging.py
import logging

from variant_cart.utils.settings import LOG_LEVEL

_FORMAT = "%(asctime)s %(levelname)s %(name)s - %(message)s"
_configured = False


def setup_logging(level: str = LOG_LEVEL) -> None:
    global _configured
    if _configured:
        return

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(_FORMAT))

    root = logging.getLogger("variant_cart")
    root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    _configured = True


def get_logger(name: str) -> logging.Logger:
    setup_logging()
    return logging.getLogger(name)
