# variant_cart/services/product_client.py
from typing import List, Optional

import requests

from variant_cart.domain.options import Product
from variant_cart.domain.overrides import Override
from variant_cart.domain.schemas import OverridePayload, ProductPayload
from variant_cart.services.override_store import InMemoryOverrideStore
from variant_cart.utils.retry import http_retry
from variant_cart.utils.settings import PRODUCT_SERVICE_URL
from variant_cart.utils.logging import get_logger

logger = get_logger(__name__)


class ProductClient:
    """
    Katalog przez HTTP (product-service).
    Przy kazdym get_product odswieza overridy produktu w store w pamieci,
    wiec resolver nie widzi starszych danych niz ostatni fetch.
    """

    def __init__(
        self,
        base_url: str | None = None,
        timeout: int = 2,
        override_store: InMemoryOverrideStore | None = None,
    ):
        self.base_url = (base_url or PRODUCT_SERVICE_URL).rstrip("/")
        self.timeout = timeout
        self.override_store = override_store

    @http_retry()
    def _get(self, path: str) -> Optional[dict | list]:
        url = f"{self.base_url}{path}"
        logger.info(f"ProductClient GET {url}")

        resp = requests.get(url, timeout=self.timeout)
        if resp.status_code == 404:
            return None
        resp.raise_for_status()
        return resp.json()

    def fetch_product(self, product_id: int) -> Optional[dict]:
        return self._get(f"/products/{product_id}")

    def get_product(self, product_id: int) -> Optional[Product]:
        data = self.fetch_product(product_id)
        if data is None:
            return None

        product = ProductPayload.model_validate(data).to_domain()
        if self.override_store is not None:
            self.override_store.replace_product(product_id, self.get_overrides(product_id))
        return product

    def get_features_and_values(self, product_id: int):
        product = self.get_product(product_id)
        return product.features if product else ()

    def get_overrides(self, product_id: int) -> List[Override]:
        data = self._get(f"/products/{product_id}/overrides") or []
        return [OverridePayload.model_validate(o).to_domain() for o in data]
