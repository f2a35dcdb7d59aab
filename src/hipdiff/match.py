from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Tuple

from .hip import Archive


@dataclass(frozen=True)
class Pair:
    """Table index of one record on each side; ``None`` means absent."""

    original: Optional[int] = None
    modified: Optional[int] = None


def _freeze(m: Dict[int, List[Optional[int]]]) -> Dict[int, Pair]:
    return {k: Pair(m[k][0], m[k][1]) for k in sorted(m)}


def match_assets(original: Archive, modified: Archive) -> Dict[int, Pair]:
    m: Dict[int, List[Optional[int]]] = {}
    for i, a in enumerate(original.assets):
        m.setdefault(a.id, [None, None])[0] = i
    for i, a in enumerate(modified.assets):
        m.setdefault(a.id, [None, None])[1] = i
    return _freeze(m)


def match_layers(original: Archive, modified: Archive) -> Dict[int, Tuple[Pair, ...]]:
    """Pair layers of the same type by their occurrence order.

    The k-th original layer of a type is paired with the k-th modified layer
    of that type; a side with more layers of a type keeps the surplus unpaired.
    """
    by_type: Dict[int, List[List[Optional[int]]]] = {}
    for i, ly in enumerate(original.layers):
        by_type.setdefault(ly.type, []).append([i, None])
    seen: Dict[int, int] = {}
    for i, ly in enumerate(modified.layers):
        slots = by_type.setdefault(ly.type, [])
        k = seen.get(ly.type, 0)
        if k < len(slots):
            slots[k][1] = i
        else:
            slots.append([None, i])
        seen[ly.type] = k + 1
    return {
        t: tuple(Pair(o, mi) for o, mi in by_type[t]) for t in sorted(by_type)
    }


def match_membership(original: Archive, modified: Archive) -> Dict[int, Pair]:
    m: Dict[int, List[Optional[int]]] = {}
    for i, ly in enumerate(original.layers):
        for aid in ly.asset_ids:
            m.setdefault(aid, [None, None])[0] = i
    for i, ly in enumerate(modified.layers):
        for aid in ly.asset_ids:
            m.setdefault(aid, [None, None])[1] = i
    return _freeze(m)


@dataclass(frozen=True)
class ArchiveMatch:
    assets: Mapping[int, Pair]
    layers: Mapping[int, Tuple[Pair, ...]]
    membership: Mapping[int, Pair]


def match_archives(
    original: Archive, modified: Archive, *, with_layers: bool = True
) -> ArchiveMatch:
    layers: Dict[int, Tuple[Pair, ...]] = {}
    membership: Dict[int, Pair] = {}
    if with_layers:
        layers = match_layers(original, modified)
        membership = match_membership(original, modified)
    return ArchiveMatch(
        assets=MappingProxyType(match_assets(original, modified)),
        layers=MappingProxyType(layers),
        membership=MappingProxyType(membership),
    )
