import os
import sys

from . import const as C
from .chunk import LoadError
from .common import _dn, _fmt_ts, eprint, fmt_kv, hint_help as _hint_help, hx, tag_str
from .hip import load_archive_file


def _print_blocks(blocks):
    print("==== Chunks ====")
    print("OFFSET      LENGTH      TAG")
    print("----------  ----------  ----")
    for depth, tag, length, ofs in blocks:
        print("%-10s  %10d  %s%s" % (hx(ofs), length, "  " * depth, tag_str(tag)))


def analyze_file(path, blocks=False):
    trace = []
    try:
        arc = load_archive_file(
            path, trace=lambda d, t, n, o: trace.append((d, t, n, o))
        )
    except OSError as e:
        eprint(f"error: could not open file '{path}': {e}")
        return 1
    except LoadError as e:
        eprint(f"error: could not read file '{path}': {e}")
        return 1
    for w in arc.warnings:
        eprint(f"warning: {path}: {w}")

    print("==== HIP ====")
    print(fmt_kv("file", path))
    print(fmt_kv("size", "%d (%s)" % (os.path.getsize(path), hx(os.path.getsize(path)))))
    v = arc.version
    print(fmt_kv("sub_version", "0x%X" % v.sub_version))
    print(fmt_kv("client_version", "0x%X" % v.client_version))
    print(fmt_kv("compat_version", "0x%X" % v.compat_version))
    print(fmt_kv("flags", hx(arc.flags)))
    n = arc.counts
    print(fmt_kv("asset_count", n.asset_count))
    print(fmt_kv("layer_count", n.layer_count))
    print(fmt_kv("max_asset_size", n.max_asset_size))
    print(fmt_kv("max_layer_size", n.max_layer_size))
    print(fmt_kv("max_xform_asset_size", n.max_xform_asset_size))
    print(fmt_kv("created", "%d %s" % (arc.created.time, _fmt_ts(arc.created.time))))
    print(fmt_kv("created_string", repr(arc.created.string)))
    if arc.modified_time is not None:
        print(fmt_kv("modified", "%d %s" % (arc.modified_time, _fmt_ts(arc.modified_time))))
    if arc.platform is not None:
        print(fmt_kv("platform_id", hx(arc.platform.id)))
        for i, s in enumerate(arc.platform.strings):
            print(fmt_kv("platform[%d]" % i, repr(s)))
    print(fmt_kv("ainf", arc.asset_info))
    print(fmt_kv("linf", arc.layer_info))
    print(fmt_kv("dhdr", arc.stream_header))
    print(fmt_kv("pad_amount", arc.pad_amount))
    print(fmt_kv("payload", "%d bytes at %s" % (len(arc.payload), hx(arc.payload_offset))))

    print("")
    print("==== Assets ====")
    print(
        "ID          TYPE        OFFSET      SIZE        FLAGS       %-*s"
        % (C.NAME_W, "NAME")
    )
    print(
        "----------  ----------  ----------  ----------  ----------  %s"
        % ("-" * C.NAME_W)
    )
    for a in arc.assets:
        print(
            "%-10s  %-10s  %-10s  %10d  %-10s  %-*s"
            % (hx(a.id), tag_str(a.type), hx(a.offset), a.size, hx(a.flags), C.NAME_W, _dn(a.name))
        )

    print("")
    print("==== Layers ====")
    for i, ly in enumerate(arc.layers):
        dbg = ly.debug.value if ly.debug is not None else "-"
        print("[%d] type=%d assets=%d ldbg=%s" % (i, ly.type, len(ly.asset_ids), dbg))
        shown = ly.asset_ids[: C.MAX_LIST_PREVIEW]
        for aid in shown:
            a = arc.asset_by_id(aid)
            print("  %s %s" % (hx(aid), _dn(a.name) if a is not None else "<missing>"))
        if len(ly.asset_ids) > len(shown):
            print("  ... (%d assets omitted)" % (len(ly.asset_ids) - len(shown)))

    if blocks:
        print("")
        _print_blocks(trace)
    return 0


def main(argv=None):
    if argv is None:
        argv = sys.argv[1:]
    args = [a for a in argv if a.lower() != "--blocks"]
    blocks = len(args) != len(argv)
    if len(args) != 1:
        eprint("error: expected 1 input file for --info")
        _hint_help()
        return 2
    return analyze_file(args[0], blocks=blocks)


if __name__ == "__main__":
    raise SystemExit(main())
