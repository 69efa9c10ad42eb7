"""Buffered, endian-aware binary reader.

Wraps a seekable binary stream and serves fixed-width integer/float reads
out of a small scratch buffer, refilling it from the stream on demand.
Seeking inside the buffered window only moves the cursor; seeking outside
it drops the buffer and seeks the stream.
"""

import enum
import io
import struct
from typing import BinaryIO, Optional

from jpegmeta.buffers import BufferPool, default_pool
from jpegmeta.errors import EndOfStreamError, ReaderClosedError

MAX_BUFFER_SIZE = 4096
# Room for the widest fixed-width read (64-bit).
MIN_BUFFER_SIZE = 8


class Endianness(enum.Enum):
    BIG = 'big'
    LITTLE = 'little'

    @property
    def struct_prefix(self) -> str:
        return '>' if self is Endianness.BIG else '<'


class EndianBinaryReader:
    """Sequential, position-addressable reader over a byte source.

    The reader rents one scratch buffer from ``pool`` for its lifetime and
    returns it on close(). The underlying stream is closed as well unless
    ``leave_open`` is set. Instances are not safe for concurrent use.
    """

    def __init__(self, stream: BinaryIO, endianness: Endianness,
                 leave_open: bool = False, pool: Optional[BufferPool] = None,
                 max_buffer_size: int = MAX_BUFFER_SIZE):
        if stream is None:
            raise TypeError('stream must not be None')
        if pool is None:
            pool = default_pool()

        self._stream = stream
        self._length = _stream_length(stream)
        self._buffer_size = max(min(self._length, max_buffer_size), MIN_BUFFER_SIZE)
        self._rented = pool.rent(self._buffer_size)
        self._buffer = self._rented.array
        self._endianness = endianness
        self._fmt = endianness.struct_prefix
        self._leave_open = leave_open
        self._read_offset = 0
        self._read_length = 0
        self._closed = False

    @classmethod
    def from_bytes(cls, data: bytes, endianness: Endianness,
                   pool: Optional[BufferPool] = None,
                   max_buffer_size: int = MAX_BUFFER_SIZE) -> 'EndianBinaryReader':
        return cls(io.BytesIO(data), endianness, pool=pool,
                   max_buffer_size=max_buffer_size)

    @property
    def endianness(self) -> Endianness:
        return self._endianness

    @endianness.setter
    def endianness(self, value: Endianness):
        self._endianness = value
        self._fmt = value.struct_prefix

    @property
    def length(self) -> int:
        self._check_open()
        return self._length

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def position(self) -> int:
        self._check_open()
        return self._stream.tell() - self._read_length + self._read_offset

    @position.setter
    def position(self, value: int):
        if value < 0:
            raise ValueError(f'position must be non-negative, got {value}')
        self._check_open()

        current = self.position
        if value == current:
            return

        buffer_start = current - self._read_offset
        buffer_end = buffer_start + self._read_length

        if buffer_start <= value <= buffer_end:
            self._read_offset = value - buffer_start
        else:
            self._read_offset = 0
            self._read_length = 0
            self._stream.seek(value, io.SEEK_SET)

    def close(self):
        if self._closed:
            return
        self._closed = True
        self._rented.release()
        self._buffer = None
        if self._stream is not None:
            if not self._leave_open:
                self._stream.close()
            self._stream = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False

    # -- raw bytes ---------------------------------------------------------

    def read_into(self, buffer: bytearray, offset: int = 0,
                  count: Optional[int] = None) -> int:
        """Best-effort read into ``buffer[offset:offset+count]``.

        Returns the number of bytes copied, which may be less than ``count``
        and is 0 only at end of stream.
        """
        if count is None:
            count = len(buffer) - offset
        if count < 0:
            raise ValueError(f'count must be non-negative, got {count}')
        self._check_open()
        return self._read_internal(buffer, offset, count)

    def read_exactly_into(self, buffer: bytearray, offset: int = 0,
                          count: Optional[int] = None):
        """Fill ``buffer[offset:offset+count]`` or raise EndOfStreamError."""
        if count is None:
            count = len(buffer) - offset
        if count < 0:
            raise ValueError(f'count must be non-negative, got {count}')
        self._check_open()

        total = 0
        while total < count:
            n = self._read_internal(buffer, offset + total, count - total)
            if n == 0:
                raise EndOfStreamError(
                    f'needed {count} bytes at position {self.position}, got {total}')
            total += n

    def read_bytes(self, count: int) -> bytes:
        """Read exactly ``count`` bytes."""
        if count < 0:
            raise ValueError(f'count must be non-negative, got {count}')
        self._check_open()

        if count == 0:
            return b''

        if self._read_offset + count <= self._read_length:
            data = bytes(self._buffer[self._read_offset:self._read_offset + count])
            self._read_offset += count
            return data

        out = bytearray(count)
        unread = self._read_length - self._read_offset
        if unread > 0:
            out[:unread] = self._buffer[self._read_offset:self._read_length]

        view = memoryview(out)
        filled = unread
        while filled < count:
            n = self._stream.readinto(view[filled:])
            if not n:
                raise EndOfStreamError(
                    f'needed {count} bytes, stream ended after {filled}')
            filled += n

        self._read_offset = 0
        self._read_length = 0
        return bytes(out)

    # -- fixed width -------------------------------------------------------

    def read_byte(self) -> int:
        self._check_open()
        self._ensure_buffer(1)
        val = self._buffer[self._read_offset]
        self._read_offset += 1
        return val

    def read_uint16(self) -> int:
        return self._unpack('H', 2)

    def read_int16(self) -> int:
        return self._unpack('h', 2)

    def read_uint32(self) -> int:
        return self._unpack('I', 4)

    def read_int32(self) -> int:
        return self._unpack('i', 4)

    def read_uint64(self) -> int:
        self._check_open()
        self._ensure_buffer(8)
        first, second = struct.unpack_from(self._fmt + 'II', self._buffer,
                                           self._read_offset)
        self._read_offset += 8
        if self._endianness is Endianness.BIG:
            hi, lo = first, second
        else:
            lo, hi = first, second
        return (hi << 32) | lo

    def read_int64(self) -> int:
        val = self.read_uint64()
        return val - (1 << 64) if val & (1 << 63) else val

    def read_single(self) -> float:
        return struct.unpack('<f', struct.pack('<I', self.read_uint32()))[0]

    def read_double(self) -> float:
        return struct.unpack('<d', struct.pack('<Q', self.read_uint64()))[0]

    # -- internals ---------------------------------------------------------

    def _unpack(self, code: str, size: int) -> int:
        self._check_open()
        self._ensure_buffer(size)
        val = struct.unpack_from(self._fmt + code, self._buffer, self._read_offset)[0]
        self._read_offset += size
        return val

    def _ensure_buffer(self, count: int):
        if self._read_offset + count > self._read_length:
            self._fill_buffer(count)

    def _fill_buffer(self, min_bytes: int):
        unread = self._read_length - self._read_offset
        if unread > 0:
            self._buffer[:unread] = self._buffer[self._read_offset:self._read_length]

        view = memoryview(self._buffer)
        filled = unread
        while True:
            n = self._stream.readinto(view[filled:self._buffer_size])
            if not n:
                # Keep the tail so position stays consistent after the error.
                self._read_offset = 0
                self._read_length = filled
                raise EndOfStreamError(
                    f'needed {min_bytes} buffered bytes, only {filled} available')
            filled += n
            if filled >= min_bytes:
                break

        self._read_offset = 0
        self._read_length = filled

    def _read_internal(self, buffer: bytearray, offset: int, count: int) -> int:
        if count == 0:
            return 0

        if self._read_offset + count <= self._read_length:
            buffer[offset:offset + count] = \
                self._buffer[self._read_offset:self._read_offset + count]
            self._read_offset += count
            return count

        unread = self._read_length - self._read_offset
        if unread > 0:
            buffer[offset:offset + unread] = \
                self._buffer[self._read_offset:self._read_length]

        self._read_offset = 0
        self._read_length = 0

        view = memoryview(buffer)
        n = self._stream.readinto(view[offset + unread:offset + count]) or 0
        return unread + n

    def _check_open(self):
        if self._closed:
            raise ReaderClosedError()


def _stream_length(stream: BinaryIO) -> int:
    pos = stream.tell()
    end = stream.seek(0, io.SEEK_END)
    stream.seek(pos, io.SEEK_SET)
    return end
