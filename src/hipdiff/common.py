import os
import struct
import sys

from . import const as C


def read_bytes(path: str) -> bytes:
    with open(path, "rb") as f:
        return f.read()


def eprint(msg: str, errors: str = "backslashreplace") -> None:
    try:
        sys.stderr.write(msg + "\n")
        sys.stderr.flush()
    except Exception:
        try:
            sys.stderr.buffer.write((msg + "\n").encode("utf-8", errors=errors))
            sys.stderr.flush()
        except Exception:
            pass


def hint_help(out=None) -> None:
    p = os.path.basename(sys.argv[0]) if sys.argv and sys.argv[0] else "hipdiff"
    msg = f"hint: run '{p} --help' for command help"
    if out is None:
        eprint(msg)
        return
    try:
        out.write(msg + "\n")
    except Exception:
        eprint(msg)


def fmt_kv(k: str, v) -> str:
    return f"{k}: {v}"


_U32_BE = struct.Struct(">I")


def read_u32_be(buf, off, *, strict: bool = False, default=None):
    try:
        off_i = int(off)
    except Exception as exc:
        if strict:
            raise ValueError(f"invalid offset: {off!r}") from exc
        return default
    if off_i < 0 or off_i + 4 > len(buf):
        if strict:
            raise ValueError(
                f"buffer too small for 4 bytes at offset {off_i} (len={len(buf)})"
            )
        return default
    return _U32_BE.unpack_from(buf, off_i)[0]


def tag_str(tag) -> str:
    try:
        v = int(tag) & 0xFFFFFFFF
    except Exception:
        return "????"
    b = v.to_bytes(4, "big")
    return "".join(chr(x) if 0x20 <= x < 0x7F else "?" for x in b)


def hx(x):
    try:
        v = int(x)
    except Exception:
        return "-"
    if v < 0:
        return "-"
    if v <= 0xFFFFFFFF:
        return f"0x{v:08X}"
    return f"0x{v:X}"


def _dn(name, width=None):
    s = str(name or "")
    try:
        w = int(width) if width is not None else int(getattr(C, "NAME_W", 40))
    except Exception:
        w = 40
    if len(s) <= w:
        return s
    if w <= 1:
        return "…"
    return s[: w - 1] + "…"


def _fmt_ts(ts):
    import time

    try:
        lt = time.localtime(float(ts))
    except Exception:
        return ""
    return time.strftime("%Y-%m-%d %H:%M:%S", lt)
