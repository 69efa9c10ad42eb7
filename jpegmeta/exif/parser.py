"""EXIF (TIFF IFD) parser.

Walks IFD0 and the Exif, GPS and Interop sub-IFDs of an EXIF APP1 payload
and flattens every tag into an ExifValueCollection. Only IFD0 of the main
chain is read; the thumbnail IFD1 is ignored.
"""

import logging
import struct
from typing import Dict, List, Optional, Set

from jpegmeta.buffers import BufferPool
from jpegmeta.config import CodecConfig
from jpegmeta.errors import EndOfStreamError, MalformedHeaderError
from jpegmeta.exif.metadata import (
    ExifValueCollection,
    IFDEntry,
    MetadataEntry,
    MetadataKey,
    MetadataSection,
    TagDataType,
    swap_element_order,
    type_size,
)
from jpegmeta.exif.reader import EndianBinaryReader, Endianness
from jpegmeta.exif.tags import SUB_IFD_POINTERS

logger = logging.getLogger(__name__)

TIFF_MAGIC = 42

# Real EXIF directories hold a few dozen tags; a count far beyond this means
# the directory offset landed on garbage.
MAX_IFD_ENTRIES = 1000

_TAG_TYPES = {t.value for t in TagDataType}


def read_tiff_header(reader: EndianBinaryReader) -> int:
    """Read the TIFF header, switch the reader's byte order, return the IFD0 offset."""
    reader.position = 0
    order = reader.read_bytes(2)
    if order == b'II':
        reader.endianness = Endianness.LITTLE
    elif order == b'MM':
        reader.endianness = Endianness.BIG
    else:
        raise MalformedHeaderError(f'Unknown TIFF byte order marker: {order!r}')

    magic = reader.read_uint16()
    if magic != TIFF_MAGIC:
        raise MalformedHeaderError(f'Invalid TIFF magic number: {magic}')

    return reader.read_uint32()


def read_directory(reader: EndianBinaryReader, offset: int) -> List[IFDEntry]:
    """Read the entry count and the 12-byte entries of the IFD at ``offset``."""
    reader.position = offset
    count = reader.read_uint16()
    if count > MAX_IFD_ENTRIES:
        raise MalformedHeaderError(
            f'IFD at offset {offset} claims {count} entries')
    return [IFDEntry.read(reader) for _ in range(count)]


def read_entry_value(reader: EndianBinaryReader, entry: IFDEntry) -> bytes:
    """Return the raw value bytes of ``entry``, in file byte order."""
    size = entry.count * type_size(TagDataType(entry.type))
    if size <= 4:
        return struct.pack(reader.endianness.struct_prefix + 'I', entry.offset)[:size]
    if entry.offset + size > reader.length:
        raise EndOfStreamError(
            f'tag 0x{entry.tag:04X} value ({size} bytes at offset {entry.offset}) '
            f'runs past the end of the EXIF data')
    reader.position = entry.offset
    return reader.read_bytes(size)


def parse(data: bytes, pool: Optional[BufferPool] = None,
          config: Optional[CodecConfig] = None) -> ExifValueCollection:
    """Parse a TIFF-format EXIF block into a flat entry collection.

    Raises EndOfStreamError on truncated data and MalformedHeaderError on an
    unknown byte-order marker or bad magic number.
    """
    if config is None:
        config = CodecConfig.default()

    items: Dict[MetadataKey, MetadataEntry] = {}

    with EndianBinaryReader.from_bytes(data, Endianness.LITTLE, pool=pool,
                                       max_buffer_size=config.reader_buffer_size) as reader:
        ifd0_offset = read_tiff_header(reader)
        _parse_directory(reader, ifd0_offset, MetadataSection.IMAGE, items, set())

    return ExifValueCollection(list(items.values()))


def _parse_directory(reader: EndianBinaryReader, offset: int,
                     section: MetadataSection,
                     items: Dict[MetadataKey, MetadataEntry],
                     visited: Set[int]):
    visited.add(offset)
    entries = read_directory(reader, offset)
    pointers = SUB_IFD_POINTERS[section]
    swap = reader.endianness is Endianness.BIG

    for entry in entries:
        child = pointers.get(entry.tag)
        if child is not None:
            _parse_sub_directory(reader, entry, child, items, visited)
            continue

        if entry.type not in _TAG_TYPES:
            logger.debug("skipping tag 0x%04X in %s IFD: unknown type %d",
                         entry.tag, section.value, entry.type)
            continue

        dtype = TagDataType(entry.type)
        raw = read_entry_value(reader, entry)
        if swap:
            raw = swap_element_order(raw, dtype)

        key = MetadataKey(section, entry.tag)
        # Last write wins; dict keeps the first insertion position.
        items[key] = MetadataEntry.from_key(key, dtype, raw)


def _parse_sub_directory(reader: EndianBinaryReader, pointer: IFDEntry,
                         section: MetadataSection,
                         items: Dict[MetadataKey, MetadataEntry],
                         visited: Set[int]):
    sub_offset = pointer.offset
    if sub_offset == 0 or sub_offset + 2 > reader.length:
        logger.warning("ignoring %s IFD: offset %d outside EXIF data (%d bytes)",
                       section.value, sub_offset, reader.length)
        return
    if sub_offset in visited:
        logger.warning("ignoring %s IFD: offset %d already parsed",
                       section.value, sub_offset)
        return
    _parse_directory(reader, sub_offset, section, items, visited)
