from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, List, Optional

from . import const as C
from .common import read_u32_be, tag_str


class LoadError(RuntimeError):
    """Base class for every failure while loading an archive.

    ``tag``, ``depth`` and ``offset`` locate the fault in the stream;
    ``stage`` names the chunk the builder was reading when it happened.
    """

    def __init__(self, msg, *, tag=None, depth=None, offset=None, stage=""):
        super().__init__(msg)
        self.msg = str(msg)
        self.tag = tag
        self.depth = depth
        self.offset = offset
        self.stage = str(stage or "")

    def __str__(self):
        parts = []
        if self.stage:
            parts.append(self.stage)
        parts.append(self.msg)
        ctx = []
        if self.tag is not None:
            ctx.append("tag=%s" % tag_str(self.tag))
        if self.depth is not None:
            ctx.append("depth=%d" % self.depth)
        if self.offset is not None:
            ctx.append("offset=0x%X" % self.offset)
        s = ": ".join(parts)
        if ctx:
            s += " (%s)" % " ".join(ctx)
        return s


class StructuralError(LoadError):
    pass


class TruncatedReadError(LoadError, EOFError):
    pass


class CountMismatchError(LoadError):
    pass


class BoundsError(LoadError):
    pass


@dataclass(frozen=True)
class Chunk:
    tag: int
    length: int
    end: int


TraceFn = Callable[[int, int, int, int], None]


class ChunkReader:
    """Cursor over a big-endian, tag/length nested chunk stream."""

    def __init__(
        self,
        data,
        *,
        max_depth: int = C.MAX_STACK_DEPTH,
        trace: Optional[TraceFn] = None,
    ):
        self._buf = memoryview(data).cast("B")
        self._pos = 0
        self._stack: List[Chunk] = []
        self._max_depth = int(max_depth)
        self._trace = trace

    @property
    def position(self) -> int:
        return self._pos

    @property
    def depth(self) -> int:
        return len(self._stack)

    @property
    def current(self) -> Optional[Chunk]:
        return self._stack[-1] if self._stack else None

    @property
    def size(self) -> int:
        return len(self._buf)

    def _limit(self) -> int:
        return self._stack[-1].end if self._stack else len(self._buf)

    def remaining(self) -> int:
        return max(0, self._limit() - self._pos)

    def _tag(self):
        return self._stack[-1].tag if self._stack else None

    def _error(self, cls, msg, tag=None):
        return cls(
            msg,
            tag=self._tag() if tag is None else tag,
            depth=self.depth,
            offset=self._pos,
        )

    def enter(self) -> Optional[int]:
        if self.depth >= self._max_depth:
            raise self._error(
                StructuralError, "max chunk stack depth reached (%d)" % self._max_depth
            )
        parent = self.current
        if parent is not None and self._pos >= parent.end:
            return None
        if self._pos + C.CHUNK_HDR_SIZE > len(self._buf):
            return None
        start = self._pos
        tag = read_u32_be(self._buf, self._pos)
        length = read_u32_be(self._buf, self._pos + 4)
        end = self._pos + C.CHUNK_HDR_SIZE + length
        if end > len(self._buf):
            raise StructuralError(
                "chunk length %d runs past end of stream (len=%d)"
                % (length, len(self._buf)),
                tag=tag,
                depth=self.depth,
                offset=start,
            )
        if parent is not None and end > parent.end:
            raise StructuralError(
                "chunk length %d runs past end of parent %s"
                % (length, tag_str(parent.tag)),
                tag=tag,
                depth=self.depth,
                offset=start,
            )
        self._pos = start + C.CHUNK_HDR_SIZE
        self._stack.append(Chunk(tag=tag, length=length, end=end))
        if self._trace is not None:
            self._trace(self.depth - 1, tag, length, start)
        return tag

    def exit(self) -> None:
        if not self._stack:
            raise self._error(StructuralError, "chunk stack underflow")
        blk = self._stack.pop()
        self._pos = blk.end

    def _need(self, n: int, what: str) -> None:
        if n < 0 or self._pos + n > self._limit():
            where = "chunk" if self._stack else "stream"
            raise self._error(
                TruncatedReadError, "unexpected end of %s while reading %s" % (where, what)
            )

    def read_u32(self) -> int:
        self._need(4, "u32")
        v = read_u32_be(self._buf, self._pos, strict=True)
        self._pos += 4
        return int(v)

    def read_u32s(self, n: int) -> List[int]:
        return [self.read_u32() for _ in range(int(n))]

    def read_bytes(self, n: int) -> bytes:
        n = int(n)
        self._need(n, "%d bytes" % n)
        b = self._buf[self._pos : self._pos + n].tobytes()
        self._pos += n
        return b

    def skip(self, n: int) -> None:
        n = int(n)
        self._need(n, "%d skipped bytes" % n)
        self._pos += n

    def read_string(self, max_size: int = C.STRING_SIZE) -> str:
        max_size = int(max_size)
        out = bytearray()
        n = 0
        terminated = False
        while n < max_size:
            c = self._getc()
            n += 1
            if c == 0:
                terminated = True
                break
            out.append(c)
        if not terminated:
            while self._getc() != 0:
                n += 1
            n += 1
        if n & 1:
            self.skip(1)
        keep = max(0, max_size - 1)
        return bytes(out[:keep]).decode(C.STRING_ENCODING)

    def _getc(self) -> int:
        self._need(1, "string")
        c = self._buf[self._pos]
        self._pos += 1
        return c
