from __future__ import annotations

from dataclasses import dataclass, fields
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Set, Tuple

from .common import hx
from .hip import Archive, Asset, AssetDebug, LayerDebug
from .match import ArchiveMatch, Pair, match_archives

ADDITION = "addition"
DELETION = "deletion"
MODIFICATION = "modification"

HEADER_BUCKETS = ("PVER", "PFLG", "PCNT", "PCRT", "PMOD", "PLAT", "AINF")
ASSET_BUCKETS = ("assets_added", "assets_deleted", "assets_modified")
LAYER_BUCKETS = ("layers_added", "layers_deleted", "layers_modified")
BUCKETS = HEADER_BUCKETS + ASSET_BUCKETS + LAYER_BUCKETS


@dataclass(frozen=True)
class DiffEntry:
    """One reported change.

    Top-level entries are the logical records that the report counts;
    ``details`` holds the field-level lines rendered beneath them.
    """

    kind: str
    left: str = ""
    right: str = ""
    details: Tuple["DiffEntry", ...] = ()


def _add(text, details=()):
    return DiffEntry(ADDITION, "", text, tuple(details))


def _del(text, details=()):
    return DiffEntry(DELETION, text, "", tuple(details))


def _mod(left, right=None, details=()):
    return DiffEntry(MODIFICATION, left, left if right is None else right, tuple(details))


@dataclass(frozen=True)
class DiffOptions:
    assets_only: bool = False
    detailed: bool = False
    ignore_data_if_checksum_matches: bool = False
    diff_offsets: bool = False
    diff_pluses: bool = False

    _ALIASES = {
        "assetsOnly": "assets_only",
        "ignoreDataIfChecksumMatches": "ignore_data_if_checksum_matches",
        "diffOffsets": "diff_offsets",
        "diffPluses": "diff_pluses",
    }

    @classmethod
    def from_mapping(cls, m: Mapping[str, object]) -> "DiffOptions":
        known = {f.name for f in fields(cls)}
        kw = {}
        for k, v in m.items():
            k = cls._ALIASES.get(k, k)
            if k not in known:
                raise KeyError("unknown diff option: %s" % k)
            kw[k] = bool(v)
        return cls(**kw)


@dataclass(frozen=True)
class DiffReport:
    buckets: Mapping[str, Tuple[DiffEntry, ...]]
    options: DiffOptions = DiffOptions()

    def bucket(self, name: str) -> Tuple[DiffEntry, ...]:
        return self.buckets.get(name, ())

    def record_count(self, name: str) -> int:
        return len(self.bucket(name))

    def _count(self, kind: str) -> int:
        return sum(1 for es in self.buckets.values() for e in es if e.kind == kind)

    @property
    def additions(self) -> int:
        return self._count(ADDITION)

    @property
    def deletions(self) -> int:
        return self._count(DELETION)

    @property
    def modifications(self) -> int:
        return self._count(MODIFICATION)

    @property
    def is_empty(self) -> bool:
        return not any(self.buckets.values())


def _strip_eol(s: str) -> str:
    if s.endswith("\r\n"):
        return s[:-2]
    if s.endswith("\n"):
        return s[:-1]
    return s


def _diff_header(o: Archive, m: Archive, out: Dict[str, List[DiffEntry]]) -> None:
    def _d(bucket, fmt, a, b):
        if a != b:
            out[bucket].append(_mod(fmt % a, fmt % b))

    _d("PVER", "sub_version: 0x%X", o.version.sub_version, m.version.sub_version)
    _d("PVER", "client_version: 0x%X", o.version.client_version, m.version.client_version)
    _d("PVER", "compat_version: 0x%X", o.version.compat_version, m.version.compat_version)
    _d("PFLG", "flags: 0x%X", o.flags, m.flags)
    _d("PCNT", "asset_count: %d", o.counts.asset_count, m.counts.asset_count)
    _d("PCNT", "layer_count: %d", o.counts.layer_count, m.counts.layer_count)
    _d("PCNT", "max_asset_size: %d", o.counts.max_asset_size, m.counts.max_asset_size)
    _d("PCNT", "max_layer_size: %d", o.counts.max_layer_size, m.counts.max_layer_size)
    _d(
        "PCNT",
        "max_xform_asset_size: %d",
        o.counts.max_xform_asset_size,
        m.counts.max_xform_asset_size,
    )
    _d("PCRT", "time: %d", o.created.time, m.created.time)
    _d("PCRT", '"%s"', _strip_eol(o.created.string), _strip_eol(m.created.string))

    if o.modified_time is not None and m.modified_time is not None:
        _d("PMOD", "time: %d", o.modified_time, m.modified_time)
    elif o.modified_time is not None:
        out["PMOD"].append(_del("time: %d" % o.modified_time))
    elif m.modified_time is not None:
        out["PMOD"].append(_add("time: %d" % m.modified_time))

    op, mp = o.platform, m.platform
    if op is not None and mp is None:
        out["PLAT"].append(
            _del("id: 0x%08X" % op.id, [_del('"%s"' % s) for s in op.strings])
        )
    elif op is None and mp is not None:
        out["PLAT"].append(
            _add("id: 0x%08X" % mp.id, [_add('"%s"' % s) for s in mp.strings])
        )
    elif op is not None and mp is not None:
        _d("PLAT", "id: 0x%08X", op.id, mp.id)
        for i in range(max(len(op.strings), len(mp.strings))):
            if i >= len(op.strings):
                out["PLAT"].append(_add('"%s"' % mp.strings[i]))
            elif i >= len(mp.strings):
                out["PLAT"].append(_del('"%s"' % op.strings[i]))
            else:
                _d("PLAT", '"%s"', op.strings[i], mp.strings[i])

    _d("AINF", "ainf: %d", o.asset_info, m.asset_info)


def _label(a: Optional[Asset], asset_id: int) -> str:
    if a is not None and a.name:
        return a.name
    return hx(asset_id)


def _dbg(a: Asset) -> AssetDebug:
    return a.debug if a.debug is not None else AssetDebug()


def _asset_fields(a: Asset, entry) -> List[DiffEntry]:
    rows = [
        entry("id: 0x%08X" % a.id),
        entry("type: 0x%08X" % a.type),
        entry("offset: %d" % a.offset),
        entry("size: %d" % a.size),
        entry("plus: %d" % a.plus),
        entry("flags: 0x%08X" % a.flags),
    ]
    if a.debug is not None:
        d = a.debug
        rows.append(
            entry(
                "ADBG",
                [
                    entry("align: %d" % d.align),
                    entry("name: %s" % d.name),
                    entry("filename: %s" % d.filename),
                    entry("checksum: 0x%08X" % d.checksum),
                ],
            )
        )
    return rows


def _data_changed(oa: Asset, ma: Asset, opts: DiffOptions) -> bool:
    if oa.size != ma.size:
        return True
    if opts.ignore_data_if_checksum_matches:
        return _dbg(oa).checksum != _dbg(ma).checksum
    return oa.data != ma.data


def _diff_asset_pair(oa: Asset, ma: Asset, opts: DiffOptions) -> Optional[DiffEntry]:
    ahdr: List[DiffEntry] = []
    adbg: List[DiffEntry] = []

    def _d(rows, fmt, a, b, enabled=True):
        if enabled and a != b:
            rows.append(_mod(fmt % a, fmt % b))

    _d(ahdr, "type: 0x%08X", oa.type, ma.type)
    _d(ahdr, "offset: %d", oa.offset, ma.offset, opts.diff_offsets)
    _d(ahdr, "size: %d", oa.size, ma.size)
    _d(ahdr, "plus: %d", oa.plus, ma.plus, opts.diff_pluses)
    _d(ahdr, "flags: 0x%08X", oa.flags, ma.flags)
    if _data_changed(oa, ma, opts):
        ahdr.append(_mod("data changed"))

    od, md = _dbg(oa), _dbg(ma)
    _d(adbg, "align: %d", od.align, md.align)
    _d(adbg, "name: %s", od.name, md.name)
    _d(adbg, "filename: %s", od.filename, md.filename)
    _d(adbg, "checksum: 0x%08X", od.checksum, md.checksum)

    if not ahdr and not adbg:
        return None
    ol, ml = _label(oa, oa.id), _label(ma, ma.id)
    if not opts.detailed:
        return _mod(ol, ml)
    if adbg:
        ahdr.append(_mod("ADBG", details=adbg))
    return _mod("AHDR (%s)" % ol, "AHDR (%s)" % ml, ahdr)


def _diff_assets(
    o: Archive,
    m: Archive,
    match: ArchiveMatch,
    opts: DiffOptions,
    out: Dict[str, List[DiffEntry]],
) -> Tuple[Set[int], Set[int]]:
    added: Set[int] = set()
    deleted: Set[int] = set()
    for aid, p in match.assets.items():
        if p.original is None:
            ma = m.assets[p.modified]
            if opts.detailed:
                out["assets_added"].append(
                    _add("AHDR (%s)" % _label(ma, aid), _asset_fields(ma, _add))
                )
            else:
                out["assets_added"].append(_add(_label(ma, aid)))
            added.add(aid)
        elif p.modified is None:
            oa = o.assets[p.original]
            if opts.detailed:
                out["assets_deleted"].append(
                    _del("AHDR (%s)" % _label(oa, aid), _asset_fields(oa, _del))
                )
            else:
                out["assets_deleted"].append(_del(_label(oa, aid)))
            deleted.add(aid)
        else:
            e = _diff_asset_pair(o.assets[p.original], m.assets[p.modified], opts)
            if e is not None:
                out["assets_modified"].append(e)
    return added, deleted


def _ldbg_text(d: Optional[LayerDebug]) -> str:
    return "ldbg: -" if d is None else "ldbg: %d" % d.value


def _member_label(arc: Archive, idx: Optional[int], asset_id: int) -> str:
    a = arc.assets[idx] if idx is not None else None
    return '"%s"' % _label(a, asset_id)


def _layer_record(arc, layer, side, match, skip, entry):
    rows = [entry("type: %d" % layer.type)]
    for aid in layer.asset_ids:
        if aid in skip:
            continue
        p = match.assets.get(aid, Pair())
        rows.append(entry(_member_label(arc, getattr(p, side), aid)))
    if layer.debug is not None:
        rows.append(entry("LDBG", [entry("ldbg: %d" % layer.debug.value)]))
    return entry("LHDR (%d)" % layer.type, rows)


def _diff_layers(
    o: Archive,
    m: Archive,
    match: ArchiveMatch,
    added: Set[int],
    deleted: Set[int],
    out: Dict[str, List[DiffEntry]],
) -> None:
    for ltype, pairs in match.layers.items():
        for lp in pairs:
            if lp.original is None:
                ly = m.layers[lp.modified]
                out["layers_added"].append(
                    _layer_record(m, ly, "modified", match, added, _add)
                )
                continue
            if lp.modified is None:
                ly = o.layers[lp.original]
                out["layers_deleted"].append(
                    _layer_record(o, ly, "original", match, deleted, _del)
                )
                continue

            rows: List[DiffEntry] = []
            for aid, ap in match.membership.items():
                ap_asset = match.assets.get(aid, Pair())
                if ap.original != lp.original and ap.modified == lp.modified:
                    if aid not in added:
                        rows.append(_add(_member_label(m, ap_asset.modified, aid)))
                elif ap.original == lp.original and ap.modified != lp.modified:
                    if aid not in deleted:
                        rows.append(_del(_member_label(o, ap_asset.original, aid)))

            od = o.layers[lp.original].debug
            md = m.layers[lp.modified].debug
            if od != md:
                rows.append(
                    _mod(
                        "LDBG",
                        details=[_mod(_ldbg_text(od), _ldbg_text(md))],
                    )
                )
            if rows:
                out["layers_modified"].append(_mod("LHDR (%d)" % ltype, details=rows))


def diff(
    original: Archive, modified: Archive, options: Optional[DiffOptions] = None
) -> DiffReport:
    """Compare two loaded archives and return the per-bucket changes.

    Neither archive is modified. Identical archives yield an empty report
    whatever the options.
    """
    if options is None:
        opts = DiffOptions()
    elif isinstance(options, DiffOptions):
        opts = options
    else:
        opts = DiffOptions.from_mapping(options)
    match = match_archives(original, modified, with_layers=not opts.assets_only)
    out: Dict[str, List[DiffEntry]] = {name: [] for name in BUCKETS}
    if not opts.assets_only:
        _diff_header(original, modified, out)
    added, deleted = _diff_assets(original, modified, match, opts, out)
    if not opts.assets_only:
        _diff_layers(original, modified, match, added, deleted, out)
    return DiffReport(
        buckets=MappingProxyType({k: tuple(v) for k, v in out.items()}),
        options=opts,
    )
