import uuid
from contextlib import contextmanager

import redis
from tenacity import Retrying, retry_if_result, stop_after_delay, wait_fixed

from variant_cart.utils.retry import redis_retry
from variant_cart.utils.settings import (
    REDIS_URL,
    LINE_LOCK_TTL_SECONDS,
    LINE_LOCK_WAIT_SECONDS,
    LINE_LOCK_POLL_SECONDS,
)
from variant_cart.utils.logging import get_logger

logger = get_logger(__name__)

#LUA porownaj i usun, atomicity
_RELEASE_LUA = """
if redis.call('GET', KEYS[1]) == ARGV[1] then
    return redis.call('DEL', KEYS[1])
else
    return 0
end
"""

#redis wykonuje atomowo przez lua, skrypt dziala jako jedna nieprzerywalna operacja
#nie mozna wcisnac sie miedzy GET a DEL, wiec get + porownanie + del wszystko naraz


class LineBusy(RuntimeError):
    """Nie udalo sie zdobyc locka linii w zadanym czasie."""


def line_lock_key(cart_id: int, product_id: int, signature_key: str) -> str:
    return f"cart:{cart_id}:line:{product_id}:{signature_key}:lock"


class LockService:
    """
    -lock na linie koszyka (cart, produkt, sygnatura)
    -zwalnianie locka tylko przez wlasciciela (token)
    -atomowosc przy pomocy lua
    """

    def __init__(self, url: str | None = None, client: redis.Redis | None = None):
        self.redis = client or redis.Redis.from_url(
            url or REDIS_URL,
            decode_responses=True,
        )

    @redis_retry()
    def acquire(self, key: str, token: str, ttl: int = LINE_LOCK_TTL_SECONDS) -> bool:
        #SET cart:1:line:...:lock "<token>" NX EX 10
        return bool(
            self.redis.set(
                name=key,
                value=token,
                nx=True, #tylko jesli klucz nie istnieje
                ex=ttl, #wygasa sam, jak proces padnie lock nie wisi w nieskonczonosc
            )
        )

    @redis_retry()
    def release(self, key: str, token: str) -> bool:
        res = self.redis.eval(_RELEASE_LUA, 1, key, token)
        return bool(res)

    @contextmanager
    def hold(
        self,
        key: str,
        ttl: int = LINE_LOCK_TTL_SECONDS,
        wait: float = LINE_LOCK_WAIT_SECONDS,
        poll: float = LINE_LOCK_POLL_SECONDS,
    ):
        token = uuid.uuid4().hex
        retrying = Retrying(
            retry=retry_if_result(lambda acquired: not acquired),
            wait=wait_fixed(poll),
            stop=stop_after_delay(wait),
            retry_error_callback=lambda state: False,
        )
        acquired = retrying(self.acquire, key, token, ttl)
        if not acquired:
            logger.warning(f"Lock {key} busy for more than {wait}s")
            raise LineBusy("Cart line is being modified by another request, retry later")

        try:
            yield token
        finally:
            if not self.release(key, token):
                logger.warning(f"Lock {key} expired before release")
