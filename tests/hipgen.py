"""Test-only HIP writer used to build synthetic archives."""

import struct
import zlib
from dataclasses import dataclass
from typing import Optional


def u32(*vals):
    return b"".join(struct.pack(">I", int(v) & 0xFFFFFFFF) for v in vals)


def chunk(tag, body=b""):
    return tag.encode("ascii") + struct.pack(">I", len(body)) + bytes(body)


def pstr(s):
    b = s.encode("latin-1") + b"\x00"
    if len(b) & 1:
        b += b"\x00"
    return b


@dataclass
class A:
    id: int
    name: str = ""
    data: bytes = b""
    type: int = 0x4D4F444C
    plus: int = 0
    flags: int = 0
    align: int = 16
    filename: str = ""
    checksum: Optional[int] = None
    debug: bool = True
    offset: Optional[int] = None
    size: Optional[int] = None


def _ahdr(aid, atype, ofs, size, plus, flags, debug):
    body = u32(aid, atype, ofs, size, plus, flags)
    if debug is not None:
        align, name, filename, checksum = debug
        body += chunk("ADBG", u32(align) + pstr(name) + pstr(filename) + u32(checksum))
    return chunk("AHDR", body)


def _lhdr(ltype, ids, ldbg):
    body = u32(ltype, len(ids)) + u32(*ids)
    if ldbg is not None:
        body += chunk("LDBG", u32(ldbg))
    return chunk("LHDR", body)


def _write(
    *,
    version,
    flags,
    counts,
    created,
    modified_time,
    platform,
    ainf,
    linf,
    dhdr,
    ahdrs,
    layers,
    pad_amount,
    payload,
    extra_top=(),
):
    pack = chunk("PVER", u32(*version))
    pack += chunk("PFLG", u32(flags))
    pack += chunk("PCNT", u32(*counts))
    pack += chunk("PCRT", u32(created[0]) + pstr(created[1]))
    if modified_time is not None:
        pack += chunk("PMOD", u32(modified_time))
    if platform is not None:
        pack += chunk("PLAT", u32(platform[0]) + b"".join(pstr(s) for s in platform[1]))
    atoc = chunk("AINF", u32(ainf)) + b"".join(_ahdr(*h) for h in ahdrs)
    ltoc = chunk("LINF", u32(linf)) + b"".join(_lhdr(*ly) for ly in layers)
    head = chunk("HIPA") + chunk("PACK", pack)
    head += b"".join(extra_top)
    head += chunk("DICT", chunk("ATOC", atoc) + chunk("LTOC", ltoc))
    dpak = u32(pad_amount) + b"\x00" * pad_amount + bytes(payload)
    strm = chunk("DHDR", u32(dhdr)) + chunk("DPAK", dpak)
    return head + chunk("STRM", strm)


def _data_start(head_len, pad_amount):
    # STRM header, DHDR chunk, DPAK header, pad amount field, pad bytes.
    return head_len + 8 + 12 + 8 + 4 + pad_amount


def build_hip(
    assets=(),
    layers=None,
    *,
    version=(2, 0x000A000F, 1),
    flags=0x2E,
    created=(1600000000, "Tue Sep 13 12:26:40 2020\n"),
    modified_time=1600000100,
    platform=None,
    ainf=0,
    linf=2,
    dhdr=0xFFFFFFFF,
    pad_amount=0,
    max_sizes=(0, 0, 0),
    counts=None,
    extra_top=(),
):
    """Build a HIP byte stream.

    ``assets`` is a list of ``A``; their data is laid out back to back in
    the packed payload. ``layers`` is a list of ``(type, ids)`` or
    ``(type, ids, ldbg)`` tuples (``ldbg=None`` omits the LDBG chunk) and
    defaults to one type-0 layer holding every asset.
    """
    assets = list(assets)
    if layers is None:
        layers = [(0, [a.id for a in assets])]
    lys = []
    for ly in layers:
        ltype, ids = ly[0], list(ly[1])
        ldbg = ly[2] if len(ly) > 2 else 0
        lys.append((ltype, ids, ldbg))
    if counts is None:
        counts = (len(assets), len(lys)) + tuple(max_sizes)

    payload = b"".join(a.data for a in assets)

    def _ahdrs(base):
        out = []
        pos = base
        for a in assets:
            ofs = a.offset if a.offset is not None else pos
            size = a.size if a.size is not None else len(a.data)
            pos += len(a.data)
            debug = None
            if a.debug:
                ck = a.checksum if a.checksum is not None else zlib.crc32(a.data)
                debug = (a.align, a.name, a.filename, ck)
            out.append((a.id, a.type, ofs, size, a.plus, a.flags, debug))
        return out

    kw = dict(
        version=version,
        flags=flags,
        counts=counts,
        created=created,
        modified_time=modified_time,
        platform=platform,
        ainf=ainf,
        linf=linf,
        dhdr=dhdr,
        layers=lys,
        pad_amount=pad_amount,
        payload=payload,
        extra_top=extra_top,
    )
    probe = _write(ahdrs=_ahdrs(0), **kw)
    strm_len = 8 + 12 + 8 + 4 + pad_amount + len(payload)
    base = _data_start(len(probe) - strm_len, pad_amount)
    return _write(ahdrs=_ahdrs(base), **kw)


def serialize_archive(arc):
    """Write a loaded Archive back with the same grammar."""
    ahdrs = []
    for a in arc.assets:
        d = a.debug
        debug = None if d is None else (d.align, d.name, d.filename, d.checksum)
        ahdrs.append((a.id, a.type, a.offset, a.size, a.plus, a.flags, debug))
    layers = [
        (ly.type, list(ly.asset_ids), None if ly.debug is None else ly.debug.value)
        for ly in arc.layers
    ]
    c = arc.counts
    return _write(
        version=(arc.version.sub_version, arc.version.client_version, arc.version.compat_version),
        flags=arc.flags,
        counts=(c.asset_count, c.layer_count, c.max_asset_size, c.max_layer_size, c.max_xform_asset_size),
        created=(arc.created.time, arc.created.string),
        modified_time=arc.modified_time,
        platform=None if arc.platform is None else (arc.platform.id, arc.platform.strings),
        ainf=arc.asset_info,
        linf=arc.layer_info,
        dhdr=arc.stream_header,
        ahdrs=ahdrs,
        layers=layers,
        pad_amount=arc.pad_amount,
        payload=arc.payload,
    )
