# variant_cart/domain/signature.py
import hashlib
import json
from dataclasses import dataclass
from typing import Dict, FrozenSet, Iterable, List, Mapping, Tuple, Union

Token = Tuple[int, str]
SelectionValue = Union[str, Iterable[str]]
Selection = Mapping[int, SelectionValue]


def selected_keys(chosen: SelectionValue) -> FrozenSet[str]:
    """Pojedynczy klucz albo kolekcja kluczy (multi-select) -> frozenset."""
    if isinstance(chosen, str):
        return frozenset([chosen])
    return frozenset(chosen)


@dataclass(frozen=True)
class CombinationSignature:
    """
    Znormalizowany wybor klienta: zbior tokenow (feature_id, value_key).
    Kolejnosc i duplikaty nie maja znaczenia, equality/hash po zbiorze.
    """

    tokens: FrozenSet[Token]

    @classmethod
    def from_selection(cls, selection: Selection) -> "CombinationSignature":
        tokens = set()
        for feature_id, chosen in selection.items():
            for key in selected_keys(chosen):
                tokens.add((feature_id, key))
        return cls(frozenset(tokens))

    @classmethod
    def from_pairs(cls, pairs: Iterable[Iterable]) -> "CombinationSignature":
        return cls(frozenset((int(fid), str(key)) for fid, key in pairs))

    def to_pairs(self) -> List[List]:
        return [[fid, key] for fid, key in sorted(self.tokens)]

    def to_selection(self) -> Dict[int, SelectionValue]:
        grouped: Dict[int, List[str]] = {}
        for fid, key in sorted(self.tokens):
            grouped.setdefault(fid, []).append(key)
        return {fid: keys[0] if len(keys) == 1 else keys for fid, keys in grouped.items()}

    @property
    def feature_ids(self) -> FrozenSet[int]:
        return frozenset(fid for fid, _ in self.tokens)

    @property
    def canonical(self) -> str:
        # json zamiast "a:b|c:d" bo klucze wartosci moga zawierac separatory
        return json.dumps(self.to_pairs(), separators=(",", ":"), ensure_ascii=False)

    @property
    def key(self) -> str:
        return hashlib.sha256(self.canonical.encode("utf-8")).hexdigest()

    def __len__(self) -> int:
        return len(self.tokens)

    def __str__(self) -> str:
        return "{" + ",".join(f"{fid}:{key}" for fid, key in sorted(self.tokens)) + "}"
