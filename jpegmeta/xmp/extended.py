"""Extended XMP: splitting oversized packets into APP1 chunks and back.

A JPEG APP1 segment cannot hold an XMP packet larger than about 64 KB.
Larger packets are stored as a small standard packet that names the MD5
digest of the full packet (``xmpNote:HasExtendedXMP``), plus a series of
extended chunks. Each chunk APP1 payload is laid out as::

    http://ns.adobe.com/xmp/extension/\\0   signature, 35 bytes
    <32 ASCII hex digits>                   MD5 GUID of the full packet
    <u32 big-endian>                        full packet length
    <u32 big-endian>                        offset of this chunk
    <payload>                               at most 65400 bytes
"""

import hashlib
import logging
import struct
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Tuple

from jpegmeta.buffers import BufferPool, PooledBuffer, default_pool
from jpegmeta.config import CodecConfig
from jpegmeta.errors import InconsistentChunkError
from jpegmeta.xmp.constants import (
    EXTENDED_XMP_HEADER_LENGTH,
    EXTENDED_XMP_PREFIX,
    GUID_LENGTH,
    STANDARD_XMP_PREFIX,
)

logger = logging.getLogger(__name__)

_PACKET_BEGIN = (
    '<?xpacket begin="\ufeff" id="W5M0MpCehiHzreSzNTczkc9d"?>\n'
    '  <x:xmpmeta xmlns:x="adobe:ns:meta/">\n'
    '    <rdf:RDF xmlns:rdf="http://www.w3.org/1999/02/22-rdf-syntax-ns#">\n'
    '      <rdf:Description rdf:about="" xmlns:xmpNote="http://ns.adobe.com/xmp/note/"'
    ' xmpNote:HasExtendedXMP="{guid}" />\n'
    '    </rdf:RDF>\n'
    '  </x:xmpmeta>'
)
_PACKET_END = '\n<?xpacket end="w"?>'


@dataclass
class ExtendedXmpData:
    """Result of splitting a packet: the standard APP1 payload plus chunk payloads in order."""
    standard_xmp_bytes: bytes
    extended_xmp_chunks: List[bytes] = field(default_factory=list)


class ExtendedXmpChunk:
    """One parsed extended chunk. Owns a rented buffer until release()."""

    def __init__(self, md5_guid: str, total_length: int, chunk_offset: int,
                 data: PooledBuffer):
        self.md5_guid = md5_guid
        self.total_length = total_length
        self.chunk_offset = chunk_offset
        self._data = data

    @property
    def data(self) -> PooledBuffer:
        return self._data

    @property
    def payload(self) -> memoryview:
        return memoryview(self._data.array)[:self._data.requested_length]

    def release(self):
        self._data.release()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.release()
        return False

    def __repr__(self) -> str:
        return (f'ExtendedXmpChunk(guid={self.md5_guid}, total={self.total_length}, '
                f'offset={self.chunk_offset}, length={self._data.requested_length})')


def compute_guid(packet: bytes) -> str:
    """MD5 digest of ``packet`` as 32 uppercase hex digits."""
    return hashlib.md5(packet).hexdigest().upper()


def add_signature_to_standard_xmp_packet(packet: bytes) -> bytes:
    return STANDARD_XMP_PREFIX + packet


def create_standard_packet_for_extended_xmp(guid: str, target_size: int = 1024) -> bytes:
    """Build the stub standard packet that points at extended XMP ``guid``.

    Spaces are inserted before the closing xpacket instruction until the
    packet reaches ``target_size`` bytes so it can be edited in place.
    """
    begin = _PACKET_BEGIN.format(guid=guid).encode('utf-8')
    end = _PACKET_END.encode('utf-8')
    padding = max(0, target_size - len(begin) - len(end))
    return add_signature_to_standard_xmp_packet(begin + b' ' * padding + end)


def split_into_extended_xmp(packet: bytes,
                            config: Optional[CodecConfig] = None) -> ExtendedXmpData:
    """Always split: stub standard packet plus ceil(len / chunk size) chunks."""
    if config is None:
        config = CodecConfig.default()

    guid = compute_guid(packet)
    guid_ascii = guid.encode('ascii')
    standard = create_standard_packet_for_extended_xmp(
        guid, config.standard_packet_target_size)

    total = len(packet)
    chunk_size = config.extended_chunk_size
    chunks = []
    for start in range(0, total, chunk_size):
        end = min(total, start + chunk_size)
        chunks.append(EXTENDED_XMP_PREFIX + guid_ascii
                      + struct.pack('>II', total, start)
                      + packet[start:end])

    logger.debug("split %d byte XMP packet into %d extended chunks (GUID %s)",
                 total, len(chunks), guid)
    return ExtendedXmpData(standard, chunks)


def split_xmp_packet(packet: bytes,
                     config: Optional[CodecConfig] = None) -> ExtendedXmpData:
    """Prepare APP1 payloads for ``packet`` (UTF-8 packet XML).

    Packets up to ``config.max_standard_xmp_length`` bytes are stored as a
    single standard packet with no extended chunks.
    """
    if config is None:
        config = CodecConfig.default()
    if len(packet) <= config.max_standard_xmp_length:
        return ExtendedXmpData(add_signature_to_standard_xmp_packet(packet), [])
    return split_into_extended_xmp(packet, config)


def strip_signature(payload: bytes, prefix: bytes) -> Optional[bytes]:
    """Return ``payload`` without ``prefix``, or None if it does not start with it."""
    if payload.startswith(prefix):
        return payload[len(prefix):]
    return None


def try_parse_extended_xmp_chunk(blob: bytes,
                                 pool: Optional[BufferPool] = None) -> Optional[ExtendedXmpChunk]:
    """Parse one extended chunk (signature already stripped).

    Returns None when the blob is too short to hold a header and payload.
    """
    if len(blob) <= EXTENDED_XMP_HEADER_LENGTH:
        return None
    if pool is None:
        pool = default_pool()

    md5 = blob[:GUID_LENGTH].decode('ascii', errors='replace')
    total_length, chunk_offset = struct.unpack_from('>II', blob, GUID_LENGTH)

    length = len(blob) - EXTENDED_XMP_HEADER_LENGTH
    data = pool.rent(length)
    data.array[:length] = blob[EXTENDED_XMP_HEADER_LENGTH:]
    return ExtendedXmpChunk(md5, total_length, chunk_offset, data)


def recombine_extended_xmp(blobs: Iterable[bytes], guid: str,
                           pool: Optional[BufferPool] = None) -> bytes:
    """Rebuild the full extended packet from its chunks, in any order.

    Raises InconsistentChunkError if a chunk is malformed, belongs to a
    different packet, disagrees on the total length, falls outside it, or
    if the chunks leave part of the packet uncovered.
    """
    blobs = list(blobs)
    # Upper bound on what the chunks can supply; caps the allocation below.
    available = sum(len(b) for b in blobs)
    packet: Optional[bytearray] = None
    spans: List[Tuple[int, int]] = []

    for index, blob in enumerate(blobs):
        stripped = strip_signature(blob, EXTENDED_XMP_PREFIX)
        if stripped is not None:
            blob = stripped

        chunk = try_parse_extended_xmp_chunk(blob, pool)
        if chunk is None:
            raise InconsistentChunkError(f'extended XMP chunk {index} is truncated')

        with chunk:
            if chunk.md5_guid.upper() != guid.upper():
                raise InconsistentChunkError(
                    f'extended XMP chunk {index} GUID {chunk.md5_guid!r} '
                    f'does not match {guid!r}')

            if packet is None:
                if chunk.total_length > available:
                    raise InconsistentChunkError(
                        f'extended XMP chunk {index} declares length '
                        f'{chunk.total_length}, more than the chunks hold')
                packet = bytearray(chunk.total_length)
            elif len(packet) != chunk.total_length:
                raise InconsistentChunkError(
                    f'extended XMP chunk {index} declares length '
                    f'{chunk.total_length}, expected {len(packet)}')

            payload = chunk.payload
            end = chunk.chunk_offset + len(payload)
            if end > len(packet):
                raise InconsistentChunkError(
                    f'extended XMP chunk {index} ends at {end}, '
                    f'past the packet length {len(packet)}')

            packet[chunk.chunk_offset:end] = payload
            spans.append((chunk.chunk_offset, end))

    if packet is None:
        raise InconsistentChunkError('no extended XMP chunks')

    covered = 0
    for start, end in sorted(spans):
        if start > covered:
            break
        covered = max(covered, end)
    if covered < len(packet):
        raise InconsistentChunkError(
            f'extended XMP chunks cover only {covered} of {len(packet)} bytes')

    return bytes(packet)


def try_recombine_extended_xmp(blobs: Iterable[bytes], guid: str,
                               pool: Optional[BufferPool] = None) -> Optional[bytes]:
    """Like recombine_extended_xmp() but returns None instead of raising."""
    try:
        return recombine_extended_xmp(blobs, guid, pool)
    except InconsistentChunkError as e:
        logger.warning("discarding extended XMP: %s", e.message)
        return None
