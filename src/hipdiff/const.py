def _tag(s):
    b = s.encode("ascii")
    return (b[0] << 24) | (b[1] << 16) | (b[2] << 8) | b[3]


HIPA = _tag("HIPA")
PACK = _tag("PACK")
PVER = _tag("PVER")
PFLG = _tag("PFLG")
PCNT = _tag("PCNT")
PCRT = _tag("PCRT")
PMOD = _tag("PMOD")
PLAT = _tag("PLAT")
DICT = _tag("DICT")
ATOC = _tag("ATOC")
AINF = _tag("AINF")
AHDR = _tag("AHDR")
ADBG = _tag("ADBG")
LTOC = _tag("LTOC")
LINF = _tag("LINF")
LHDR = _tag("LHDR")
LDBG = _tag("LDBG")
STRM = _tag("STRM")
DHDR = _tag("DHDR")
DPAK = _tag("DPAK")

CHUNK_HDR_SIZE = 8
MAX_STACK_DEPTH = 8
MAX_PLATFORM_STRINGS = 4
STRING_SIZE = 32
STRING_ENCODING = "latin-1"

DEFAULT_COLUMN_WIDTH = 50
NAME_W = 40
MAX_LIST_PREVIEW = 8
