from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from . import const as C
from .chunk import (
    BoundsError,
    ChunkReader,
    CountMismatchError,
    LoadError,
    StructuralError,
    TraceFn,
)
from .common import hx, read_bytes, tag_str

_EMPTY = memoryview(b"")


@dataclass(frozen=True)
class PackageVersion:
    sub_version: int = 0
    client_version: int = 0
    compat_version: int = 0


@dataclass(frozen=True)
class PackageCounts:
    asset_count: int = 0
    layer_count: int = 0
    max_asset_size: int = 0
    max_layer_size: int = 0
    max_xform_asset_size: int = 0


@dataclass(frozen=True)
class CreationRecord:
    time: int = 0
    string: str = ""


@dataclass(frozen=True)
class PlatformRecord:
    id: int = 0
    strings: Tuple[str, ...] = ()


@dataclass(frozen=True)
class AssetDebug:
    align: int = 0
    name: str = ""
    filename: str = ""
    checksum: int = 0


@dataclass(frozen=True)
class Asset:
    id: int
    type: int = 0
    offset: int = 0
    size: int = 0
    plus: int = 0
    flags: int = 0
    debug: Optional[AssetDebug] = None
    data: memoryview = field(default=_EMPTY, compare=False, repr=False)

    @property
    def name(self) -> str:
        return self.debug.name if self.debug is not None else ""


@dataclass(frozen=True)
class LayerDebug:
    value: int = 0


@dataclass(frozen=True)
class Layer:
    type: int = 0
    asset_ids: Tuple[int, ...] = ()
    debug: Optional[LayerDebug] = None


@dataclass(frozen=True)
class Archive:
    version: PackageVersion = PackageVersion()
    flags: int = 0
    counts: PackageCounts = PackageCounts()
    created: CreationRecord = CreationRecord()
    modified_time: Optional[int] = None
    platform: Optional[PlatformRecord] = None
    asset_info: int = 0
    layer_info: int = 0
    stream_header: int = 0
    assets: Tuple[Asset, ...] = ()
    layers: Tuple[Layer, ...] = ()
    pad_amount: int = 0
    payload_offset: int = 0
    payload: bytes = field(default=b"", repr=False)
    warnings: Tuple[str, ...] = ()
    path: str = ""

    def asset_by_id(self, asset_id: int) -> Optional[Asset]:
        for a in self.assets:
            if a.id == asset_id:
                return a
        return None


class _Builder:
    """Drives a ChunkReader through the HIP grammar.

    Fields are collected into plain lists/dicts while reading and frozen
    into an Archive by ``build()`` once the whole stream was consumed.
    """

    def __init__(self, reader: ChunkReader):
        self.r = reader
        self.version = PackageVersion()
        self.flags = 0
        self.counts = PackageCounts()
        self.created = CreationRecord()
        self.modified_time: Optional[int] = None
        self.platform: Optional[PlatformRecord] = None
        self.asset_info = 0
        self.layer_info = 0
        self.stream_header = 0
        self.assets: List[dict] = []
        self.layers: List[Layer] = []
        self.pad_amount = 0
        self.payload_offset = 0
        self.payload = b""
        self.has_payload = False
        self.warnings: List[str] = []

    def _children(self, handlers: Dict[int, object]):
        while True:
            cid = self.r.enter()
            if cid is None:
                return
            fn = handlers.get(cid)
            if fn is not None:
                try:
                    fn()
                except LoadError as e:
                    if not e.stage:
                        e.stage = "Failed to read %s chunk" % tag_str(cid)
                    raise
            self.r.exit()

    def read(self) -> None:
        cid = self.r.enter()
        if cid != C.HIPA:
            raise StructuralError(
                "not a valid HIP file", tag=cid, depth=0, offset=0
            )
        self.r.exit()
        self._children(
            {
                C.HIPA: lambda: None,
                C.PACK: self._pack,
                C.DICT: self._dict,
                C.STRM: self._strm,
            }
        )

    def _pack(self):
        self._children(
            {
                C.PVER: self._pver,
                C.PFLG: self._pflg,
                C.PCNT: self._pcnt,
                C.PCRT: self._pcrt,
                C.PMOD: self._pmod,
                C.PLAT: self._plat,
            }
        )

    def _pver(self):
        self.version = PackageVersion(*self.r.read_u32s(3))

    def _pflg(self):
        self.flags = self.r.read_u32()

    def _pcnt(self):
        self.counts = PackageCounts(*self.r.read_u32s(5))

    def _pcrt(self):
        t = self.r.read_u32()
        self.created = CreationRecord(time=t, string=self.r.read_string())

    def _pmod(self):
        self.modified_time = self.r.read_u32()

    def _plat(self):
        pid = self.r.read_u32()
        strings = []
        while self.r.remaining() > 0:
            if len(strings) >= C.MAX_PLATFORM_STRINGS:
                self.warnings.append(
                    "more strings than expected in PLAT chunk, skipping (max is %d)"
                    % C.MAX_PLATFORM_STRINGS
                )
                break
            strings.append(self.r.read_string())
        self.platform = PlatformRecord(id=pid, strings=tuple(strings))

    def _dict(self):
        self._children({C.ATOC: self._atoc, C.LTOC: self._ltoc})

    def _atoc(self):
        self._children({C.AINF: self._ainf, C.AHDR: self._ahdr})
        self._check_assets(self.r.depth)

    def _check_assets(self, depth):
        if len(self.assets) != self.counts.asset_count:
            raise CountMismatchError(
                "asset count mismatch: PCNT declares %d, found %d AHDR chunks"
                % (self.counts.asset_count, len(self.assets)),
                tag=C.ATOC,
                depth=depth,
            )

    def _ainf(self):
        self.asset_info = self.r.read_u32()

    def _ahdr(self):
        aid, atype, ofs, size, plus, flags = self.r.read_u32s(6)
        rec = {
            "id": aid,
            "type": atype,
            "offset": ofs,
            "size": size,
            "plus": plus,
            "flags": flags,
            "debug": None,
        }
        self.assets.append(rec)

        def _adbg():
            align = self.r.read_u32()
            name = self.r.read_string()
            filename = self.r.read_string()
            checksum = self.r.read_u32()
            rec["debug"] = AssetDebug(
                align=align, name=name, filename=filename, checksum=checksum
            )

        self._children({C.ADBG: _adbg})

    def _ltoc(self):
        self._children({C.LINF: self._linf, C.LHDR: self._lhdr})
        self._check_layers(self.r.depth)

    def _check_layers(self, depth):
        if len(self.layers) != self.counts.layer_count:
            raise CountMismatchError(
                "layer count mismatch: PCNT declares %d, found %d LHDR chunks"
                % (self.counts.layer_count, len(self.layers)),
                tag=C.LTOC,
                depth=depth,
            )
        members = sum(len(ly.asset_ids) for ly in self.layers)
        if members != self.counts.asset_count:
            raise CountMismatchError(
                "layer membership mismatch: PCNT declares %d assets, layers list %d"
                % (self.counts.asset_count, members),
                tag=C.LTOC,
                depth=depth,
            )

    def _linf(self):
        self.layer_info = self.r.read_u32()

    def _lhdr(self):
        ltype = self.r.read_u32()
        cnt = self.r.read_u32()
        ids = tuple(self.r.read_u32s(cnt))
        debug = []

        def _ldbg():
            debug.append(LayerDebug(value=self.r.read_u32()))

        self._children({C.LDBG: _ldbg})
        self.layers.append(
            Layer(type=ltype, asset_ids=ids, debug=debug[-1] if debug else None)
        )

    def _strm(self):
        self._children({C.DHDR: self._dhdr, C.DPAK: self._dpak})

    def _dhdr(self):
        self.stream_header = self.r.read_u32()

    def _dpak(self):
        if self.counts.asset_count == 0:
            return
        self.pad_amount = self.r.read_u32()
        blk = self.r.current
        if self.pad_amount > self.r.remaining():
            raise BoundsError(
                "pad amount %d runs past end of chunk" % self.pad_amount,
                tag=blk.tag,
                depth=self.r.depth,
                offset=self.r.position,
            )
        self.r.skip(self.pad_amount)
        start = self.r.position
        self.payload_offset = start
        self.payload = self.r.read_bytes(blk.end - start)
        self.has_payload = True

    def build(self, path: str = "") -> Archive:
        # Tables that never appeared are still held to the PCNT counts.
        self._check_assets(0)
        self._check_layers(0)
        payload = self.payload
        view = memoryview(payload)
        seen = set()
        assets = []
        for rec in self.assets:
            aid = rec["id"]
            if aid in seen:
                raise StructuralError(
                    "duplicate asset id %s" % hx(aid), tag=C.AHDR, depth=0
                )
            seen.add(aid)
            data = _EMPTY
            if rec["size"]:
                start = rec["offset"] - self.payload_offset
                end = start + rec["size"]
                if not self.has_payload or start < 0 or end > len(payload):
                    raise BoundsError(
                        "asset %s data [0x%X, 0x%X) outside packed payload "
                        "[0x%X, 0x%X)"
                        % (
                            hx(aid),
                            rec["offset"],
                            rec["offset"] + rec["size"],
                            self.payload_offset,
                            self.payload_offset + len(payload),
                        ),
                        tag=C.DPAK,
                        depth=0,
                    )
                data = view[start:end]
            assets.append(
                Asset(
                    id=aid,
                    type=rec["type"],
                    offset=rec["offset"],
                    size=rec["size"],
                    plus=rec["plus"],
                    flags=rec["flags"],
                    debug=rec["debug"],
                    data=data,
                )
            )
        return Archive(
            version=self.version,
            flags=self.flags,
            counts=self.counts,
            created=self.created,
            modified_time=self.modified_time,
            platform=self.platform,
            asset_info=self.asset_info,
            layer_info=self.layer_info,
            stream_header=self.stream_header,
            assets=tuple(assets),
            layers=tuple(self.layers),
            pad_amount=self.pad_amount,
            payload_offset=self.payload_offset,
            payload=payload,
            warnings=tuple(self.warnings),
            path=str(path or ""),
        )


def load_archive(source, *, path: str = "", trace: Optional[TraceFn] = None) -> Archive:
    """Parse a HIP archive from bytes or a binary file object.

    Raises a LoadError subclass on any malformed input; no partial
    Archive is ever returned.
    """
    if hasattr(source, "read"):
        source = source.read()
    if not isinstance(source, (bytes, bytearray, memoryview)):
        raise TypeError("source must be bytes-like or a binary file object")
    data = bytes(source)
    b = _Builder(ChunkReader(data, trace=trace))
    b.read()
    return b.build(path)


def load_archive_file(path: str, *, trace: Optional[TraceFn] = None) -> Archive:
    return load_archive(read_bytes(path), path=path, trace=trace)
