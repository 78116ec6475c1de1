# variant_cart/services/override_store.py
import threading
from typing import Dict, Iterable, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from variant_cart.data.models.override import OverrideModel
from variant_cart.domain.overrides import Override, OverrideKind, pick_override
from variant_cart.domain.signature import CombinationSignature
from variant_cart.utils.logging import get_logger

logger = get_logger(__name__)


class OverrideStore:
    """
    Kontrakt: lookup / upsert / remove po (product_id, sygnatura).
    Dopasowanie tylko przez rownosc zbiorow tokenow, bez podzbiorow/nadzbiorow.
    """

    def candidates(self, product_id: int, signature: CombinationSignature) -> Iterable[Override]:
        raise NotImplementedError

    def upsert(self, product_id: int, override: Override) -> Override:
        raise NotImplementedError

    def remove(self, product_id: int, signature: CombinationSignature, kind: Optional[OverrideKind] = None) -> int:
        raise NotImplementedError

    def lookup(self, product_id: int, signature: CombinationSignature) -> Optional[Override]:
        return pick_override(product_id, signature, self.candidates(product_id, signature))


class SqlOverrideStore(OverrideStore):
    """Tabela group_products z indeksem (product_id, signature_key)."""

    def __init__(self, db: Session):
        self.db = db

    def _rows(self, product_id: int, signature: CombinationSignature, kind: Optional[OverrideKind] = None):
        stmt = select(OverrideModel).where(
            OverrideModel.product_id == product_id,
            OverrideModel.signature_key == signature.key,
        )
        if kind is not None:
            stmt = stmt.where(OverrideModel.kind == OverrideKind(kind).value)
        rows = self.db.execute(stmt.execution_options(populate_existing=True)).scalars().all()
        # hash moze (teoretycznie) kolidowac, porownujemy pelne zbiory
        return [r for r in rows if r.signature == signature] if rows else []

    def candidates(self, product_id: int, signature: CombinationSignature):
        return [r.to_domain() for r in self._rows(product_id, signature)]

    def upsert(self, product_id: int, override: Override) -> Override:
        try:
            self._save(product_id, override)
        except IntegrityError:
            # rownolegly insert tej samej kombinacji wygral, nadpisujemy jego wiersz
            self.db.rollback()
            logger.warning(
                f"Concurrent insert of override {override.kind.value} {override.signature} "
                f"for product {product_id}, retrying as update"
            )
            self._save(product_id, override)

        logger.info(
            f"Override {override.kind.value} {override.signature} saved for product {product_id}"
        )
        return override

    def _save(self, product_id: int, override: Override) -> None:
        rows = self._rows(product_id, override.signature, override.kind)
        if rows:
            row = rows[0]
        else:
            row = OverrideModel(
                product_id=product_id,
                kind=override.kind.value,
                signature_key=override.signature.key,
                bind=override.signature.to_pairs(),
            )
            self.db.add(row)

        # last write wins
        row.additional_price = override.additional_price
        row.stock = override.stock
        row.decreases_stock = override.decreases_stock
        row.continue_selling = override.continue_selling
        self.db.commit()

    def remove(self, product_id: int, signature: CombinationSignature, kind: Optional[OverrideKind] = None) -> int:
        rows = self._rows(product_id, signature, kind)
        for row in rows:
            self.db.delete(row)
        self.db.commit()
        logger.info(f"Removed {len(rows)} override(s) {signature} for product {product_id}")
        return len(rows)


class InMemoryOverrideStore(OverrideStore):
    """
    Indeks w pamieci: (product_id, signature_key) -> krotka overridow.
    Zapis buduje nowa krotke pod lockiem i podmienia ja w slowniku,
    odczyt nie bierze locka (widzi stara albo nowa krotke, nigdy polowe).
    """

    def __init__(self):
        self._index: Dict[Tuple[int, str], Tuple[Override, ...]] = {}
        self._by_product: Dict[int, Tuple[str, ...]] = {}
        self._write_lock = threading.Lock()

    def candidates(self, product_id: int, signature: CombinationSignature):
        return self._index.get((product_id, signature.key), ())

    def upsert(self, product_id: int, override: Override) -> Override:
        slot = (product_id, override.signature.key)
        with self._write_lock:
            kept = tuple(
                o for o in self._index.get(slot, ())
                if not (o.kind == override.kind and o.signature == override.signature)
            )
            self._index[slot] = kept + (override,)
            keys = self._by_product.get(product_id, ())
            if slot[1] not in keys:
                self._by_product[product_id] = keys + (slot[1],)
        return override

    def remove(self, product_id: int, signature: CombinationSignature, kind: Optional[OverrideKind] = None) -> int:
        slot = (product_id, signature.key)
        with self._write_lock:
            current = self._index.get(slot, ())
            kept = tuple(
                o for o in current
                if not (o.signature == signature and (kind is None or o.kind == OverrideKind(kind)))
            )
            if kept:
                self._index[slot] = kept
            else:
                self._index.pop(slot, None)
                self._by_product[product_id] = tuple(
                    k for k in self._by_product.get(product_id, ()) if k != slot[1]
                )
        return len(current) - len(kept)

    def replace_product(self, product_id: int, overrides: Iterable[Override]) -> None:
        """Podmienia caly zestaw overridow produktu (np. po fetchu z product-service)."""
        grouped: Dict[str, Tuple[Override, ...]] = {}
        for o in overrides:
            grouped[o.signature.key] = grouped.get(o.signature.key, ()) + (o,)

        with self._write_lock:
            for key in self._by_product.get(product_id, ()):
                if key not in grouped:
                    self._index.pop((product_id, key), None)
            for key, items in grouped.items():
                self._index[(product_id, key)] = items
            self._by_product[product_id] = tuple(grouped)
