"""Tests for jpegmeta/exif/reader.py -- buffered endian reads, seeking, closing."""

import io
import struct

import pytest

from jpegmeta.buffers import SimpleBufferPool
from jpegmeta.errors import EndOfStreamError, ReaderClosedError
from jpegmeta.exif.reader import MAX_BUFFER_SIZE, EndianBinaryReader, Endianness


def make_reader(data, endianness=Endianness.LITTLE, **kwargs):
    return EndianBinaryReader.from_bytes(data, endianness, **kwargs)


class TestFixedWidthReads:
    def test_uint16_both_orders(self):
        with make_reader(b'\x01\x02', Endianness.BIG) as r:
            assert r.read_uint16() == 0x0102
        with make_reader(b'\x01\x02', Endianness.LITTLE) as r:
            assert r.read_uint16() == 0x0201

    def test_uint32_both_orders(self):
        with make_reader(b'\x01\x02\x03\x04', Endianness.BIG) as r:
            assert r.read_uint32() == 0x01020304
        with make_reader(b'\x01\x02\x03\x04', Endianness.LITTLE) as r:
            assert r.read_uint32() == 0x04030201

    def test_uint64_composed_from_halves(self):
        data = bytes(range(1, 9))
        with make_reader(data, Endianness.BIG) as r:
            assert r.read_uint64() == 0x0102030405060708
        with make_reader(data, Endianness.LITTLE) as r:
            assert r.read_uint64() == 0x0807060504030201

    def test_signed_reads(self):
        data = struct.pack('<hiq', -2, -3, -4)
        with make_reader(data) as r:
            assert r.read_int16() == -2
            assert r.read_int32() == -3
            assert r.read_int64() == -4

    def test_read_byte(self):
        with make_reader(b'\xAB\xCD') as r:
            assert r.read_byte() == 0xAB
            assert r.read_byte() == 0xCD
            with pytest.raises(EndOfStreamError):
                r.read_byte()

    def test_float_reads(self):
        data = struct.pack('>fd', 1.5, -2.25)
        with make_reader(data, Endianness.BIG) as r:
            assert r.read_single() == 1.5
            assert r.read_double() == -2.25

    def test_endianness_switch_mid_stream(self):
        with make_reader(b'\x00\x01\x01\x00', Endianness.BIG) as r:
            assert r.read_uint16() == 1
            r.endianness = Endianness.LITTLE
            assert r.endianness is Endianness.LITTLE
            assert r.read_uint16() == 1

    def test_short_stream_raises(self):
        with make_reader(b'\x01\x02\x03') as r:
            with pytest.raises(EndOfStreamError):
                r.read_uint32()

    def test_eos_is_an_eof_error(self):
        with make_reader(b'') as r:
            with pytest.raises(EOFError):
                r.read_uint16()


class TestPosition:
    def test_position_advances(self):
        with make_reader(bytes(16)) as r:
            assert r.position == 0
            r.read_uint32()
            assert r.position == 4
            r.read_bytes(3)
            assert r.position == 7

    def test_seek_within_buffer(self):
        data = bytes(range(32))
        with make_reader(data) as r:
            r.read_uint16()  # fills the buffer
            r.position = 10
            assert r.read_byte() == 10
            r.position = 1
            assert r.read_byte() == 1

    def test_seek_outside_buffer(self):
        data = bytes(i % 256 for i in range(3 * MAX_BUFFER_SIZE))
        with make_reader(data) as r:
            r.read_byte()
            r.position = 2 * MAX_BUFFER_SIZE + 5
            assert r.position == 2 * MAX_BUFFER_SIZE + 5
            assert r.read_byte() == (2 * MAX_BUFFER_SIZE + 5) % 256

    def test_negative_position_rejected(self):
        with make_reader(b'\x00') as r:
            with pytest.raises(ValueError):
                r.position = -1

    def test_seek_past_end_then_read(self):
        with make_reader(bytes(8)) as r:
            r.position = 100
            with pytest.raises(EndOfStreamError):
                r.read_uint16()

    def test_reads_spanning_refills(self):
        data = bytes(i % 256 for i in range(100))
        with make_reader(data, max_buffer_size=6) as r:
            values = [r.read_uint32() for _ in range(25)]
        assert values[0] == struct.unpack('<I', data[:4])[0]
        assert values[-1] == struct.unpack('<I', data[96:100])[0]

    def test_length(self):
        with make_reader(bytes(42)) as r:
            assert r.length == 42


class TestByteRanges:
    def test_read_bytes_within_buffer(self):
        with make_reader(b'hello world') as r:
            assert r.read_bytes(5) == b'hello'
            assert r.read_bytes(6) == b' world'

    def test_read_bytes_larger_than_buffer(self):
        data = bytes(i % 251 for i in range(10000))
        with make_reader(data) as r:
            r.read_uint16()
            assert r.read_bytes(9000) == data[2:9002]
            assert r.position == 9002

    def test_read_bytes_zero(self):
        with make_reader(b'abc') as r:
            assert r.read_bytes(0) == b''
            assert r.position == 0

    def test_read_bytes_past_end(self):
        with make_reader(b'abc') as r:
            with pytest.raises(EndOfStreamError):
                r.read_bytes(4)

    def test_read_into_best_effort(self):
        with make_reader(b'abc') as r:
            buf = bytearray(10)
            n = r.read_into(buf)
            assert n == 3
            assert buf[:3] == b'abc'
            assert r.read_into(buf) == 0

    def test_read_into_with_offset(self):
        with make_reader(b'xyz') as r:
            buf = bytearray(b'......')
            assert r.read_into(buf, 2, 3) == 3
            assert buf == bytearray(b'..xyz.')

    def test_read_exactly_into(self):
        data = bytes(range(200))
        with make_reader(data, max_buffer_size=16) as r:
            buf = bytearray(150)
            r.read_exactly_into(buf)
            assert bytes(buf) == data[:150]

    def test_read_exactly_into_short(self):
        with make_reader(b'ab') as r:
            with pytest.raises(EndOfStreamError):
                r.read_exactly_into(bytearray(3))

    def test_negative_count_rejected(self):
        with make_reader(b'ab') as r:
            with pytest.raises(ValueError):
                r.read_bytes(-1)


class TestBufferAndLifetime:
    def test_buffer_capped_by_stream_length(self):
        pool = SimpleBufferPool()
        r = make_reader(b'\x00' * 10, pool=pool)
        assert r._rented.requested_length == 10
        r.close()

    def test_buffer_capped_by_max(self):
        pool = SimpleBufferPool()
        r = make_reader(bytes(MAX_BUFFER_SIZE * 3), pool=pool)
        assert r._rented.requested_length == MAX_BUFFER_SIZE
        r.close()

    def test_close_returns_buffer(self):
        pool = SimpleBufferPool()
        r = make_reader(b'\x00' * 8, pool=pool)
        assert pool.outstanding == 1
        r.close()
        assert pool.outstanding == 0

    def test_close_is_idempotent(self):
        pool = SimpleBufferPool()
        r = make_reader(b'\x00' * 8, pool=pool)
        r.close()
        r.close()
        assert pool.outstanding == 0
        assert r.closed

    def test_closed_reader_raises(self):
        r = make_reader(b'\x00' * 8)
        r.close()
        with pytest.raises(ReaderClosedError):
            r.read_uint16()
        with pytest.raises(ReaderClosedError):
            r.read_bytes(1)
        with pytest.raises(ReaderClosedError):
            _ = r.position

    def test_closes_stream_by_default(self):
        stream = io.BytesIO(b'\x00' * 4)
        EndianBinaryReader(stream, Endianness.LITTLE).close()
        assert stream.closed

    def test_leave_open(self):
        stream = io.BytesIO(b'\x00' * 4)
        EndianBinaryReader(stream, Endianness.LITTLE, leave_open=True).close()
        assert not stream.closed

    def test_none_stream_rejected(self):
        with pytest.raises(TypeError):
            EndianBinaryReader(None, Endianness.LITTLE)

    def test_context_manager_releases_on_error(self):
        pool = SimpleBufferPool()
        with pytest.raises(EndOfStreamError):
            with make_reader(b'\x00', pool=pool) as r:
                r.read_uint32()
        assert pool.outstanding == 0

    def test_small_max_still_reads_64_bits(self):
        data = struct.pack('<QQ', 1, 2)
        with make_reader(data, max_buffer_size=2) as r:
            assert r.read_uint64() == 1
            assert r.read_uint64() == 2
