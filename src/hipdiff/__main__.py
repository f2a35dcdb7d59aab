import os
import sys

from . import const as C


def _prog():
    p = os.path.basename(sys.argv[0]) if sys.argv and sys.argv[0] else "hipdiff"
    if not p or p == "__main__.py":
        return "hipdiff"
    return p


def _get_version() -> str:
    try:
        from importlib.metadata import version as _pkg_version

        return _pkg_version("hipdiff")
    except Exception:
        try:
            from . import __version__ as _v

            return str(_v)
        except Exception:
            return "unknown"


def _print_version(out=None) -> None:
    if out is None:
        out = sys.stdout
    p = _prog()
    out.write(f"{p} {_get_version()}\n")


def _usage(out=None):
    if out is None:
        out = sys.stdout
    p = _prog()
    out.write(f"{p} {_get_version()}\n")
    out.write(
        f"usage: {p} [-h] [-V|--version] [-a] [-d] [-c] [-o] [-p] [-w <width>] [--no-color] <original HIP file> <modified HIP file>\n"
    )
    out.write(f"       {p} --info [--blocks] <HIP file>\n")
    out.write("\n")
    out.write("Options:\n")
    out.write("  -h, --help      Show help\n")
    out.write("  -V, --version   Show version and exit\n")
    out.write("  -a              Only show asset diffs\n")
    out.write("  -d              Detailed asset diffs (AHDR and ADBG chunks)\n")
    out.write("  -c              Ignore asset data if checksum matches\n")
    out.write("  -o              Diff asset offsets\n")
    out.write("  -p              Diff asset pluses\n")
    out.write(
        f"  -w <width>      Set column width (default: {C.DEFAULT_COLUMN_WIDTH})\n"
    )
    out.write("  --no-color      Disable colored output (also: NO_COLOR=1)\n")
    out.write("\n")
    out.write("Info mode:\n")
    out.write("  -i, --info      Print header, asset and layer tables of one file\n")
    out.write("  --blocks        Also print the nested chunk tree\n")


def _usage_short(out=None):
    if out is None:
        out = sys.stderr
    p = _prog()
    out.write(f"{p} {_get_version()}\n")
    out.write(
        f"usage: {p} [-h] [-V|--version] [-a] [-d] [-c] [-o] [-p] [-w <width>] <original> <modified>\n"
    )
    out.write(f"Try '{p} --help' for more information.\n")


def main(argv=None):
    if argv is None:
        argv = sys.argv[1:]
    argv = list(argv)
    if not argv:
        _usage_short()
        return 2
    flags = [a.lower() for a in argv]
    if any(a in ("-h", "--help") for a in flags):
        _usage()
        return 0
    if any(a in ("-v", "--version") for a in flags):
        _print_version()
        return 0

    if flags[0] in ("-i", "--info"):
        from . import analyze

        rc = analyze.main(argv[1:])
        if rc == 2:
            _usage_short()
        return rc

    from . import diff_tool

    rc = diff_tool.main(argv)
    if rc == 2:
        _usage_short()
    return rc


if __name__ == "__main__":
    raise SystemExit(main())
