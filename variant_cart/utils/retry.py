# variant_cart/utils/retry.py
import logging

import redis
import requests
from tenacity import before_sleep_log, retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from variant_cart.utils.logging import get_logger

logger = get_logger(__name__)

# 404/5xx z product-service nie sa powtarzane, tylko brak polaczenia i timeout
_HTTP_TRANSIENT = (requests.ConnectionError, requests.Timeout)


def _backoff(exceptions, base: float, cap: float, attempts: int = 3):
    return retry(
        reraise=True,
        stop=stop_after_attempt(attempts),
        wait=wait_exponential(multiplier=base, min=base, max=cap),
        retry=retry_if_exception_type(exceptions),
        before_sleep=before_sleep_log(logger, logging.WARNING),
    )


def http_retry():
    return _backoff(_HTTP_TRANSIENT, base=0.3, cap=3)


def redis_retry():
    return _backoff(redis.RedisError, base=0.2, cap=2)
