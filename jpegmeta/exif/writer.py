"""EXIF (TIFF IFD) writer.

Serializes metadata entries as a little-endian TIFF block: IFD0 followed by
the Exif, GPS and Interop sub-IFDs that have entries. Each directory is
immediately followed by its out-of-line value area.
"""

import logging
import struct
from typing import Dict, Iterable, List, Mapping, Optional, Union

from jpegmeta.exif.metadata import (
    ExifColorSpace,
    MetadataEntry,
    MetadataKey,
    MetadataSection,
    TagDataType,
    encode_long,
    encode_short,
    type_size,
    unique_by_key,
)
from jpegmeta.exif.tags import (
    EXIF_IFD_POINTER_TAG,
    GPS_IFD_POINTER_TAG,
    INTEROP_IFD_POINTER_TAG,
    MetadataKeys,
    SUB_IFD_POINTERS,
)

logger = logging.getLogger(__name__)

EXIF_SIGNATURE = b'Exif\x00\x00'
TIFF_HEADER_SIZE = 8

# An APP1 segment holds at most 65533 payload bytes.
MAX_APP1_PAYLOAD = 65533

_SECTION_ORDER = (
    MetadataSection.IMAGE,
    MetadataSection.EXIF,
    MetadataSection.GPS,
    MetadataSection.INTEROP,
)


class _Field:
    __slots__ = ('tag', 'dtype', 'count', 'data')

    def __init__(self, tag: int, dtype: TagDataType, count: int, data: bytes):
        self.tag = tag
        self.dtype = dtype
        self.count = count
        self.data = data


class ExifWriter:
    """Builds an EXIF block from a set of metadata entries.

    ``metadata`` may be a mapping keyed by MetadataKey or any iterable of
    entries; for duplicate keys the first entry wins. When ``color_space``
    is given it is written as the ColorSpace tag of the Exif IFD, replacing
    any existing value.
    """

    def __init__(self,
                 metadata: Union[Mapping[MetadataKey, MetadataEntry], Iterable[MetadataEntry]],
                 color_space: Optional[ExifColorSpace] = None):
        if isinstance(metadata, Mapping):
            entries = list(metadata.values())
        else:
            entries = list(metadata)
        self._entries = unique_by_key(entries)

        if color_space is not None:
            key = MetadataKeys.Exif.COLOR_SPACE
            self._entries[key] = MetadataEntry.from_key(
                key, TagDataType.SHORT, encode_short(int(color_space)))

    def write(self) -> bytes:
        """Return the TIFF block (no APP1 signature)."""
        directories = self._group_fields()
        offsets = self._layout(directories)

        _set_pointer(directories, MetadataSection.IMAGE, EXIF_IFD_POINTER_TAG,
                     offsets.get(MetadataSection.EXIF))
        _set_pointer(directories, MetadataSection.IMAGE, GPS_IFD_POINTER_TAG,
                     offsets.get(MetadataSection.GPS))
        _set_pointer(directories, MetadataSection.EXIF, INTEROP_IFD_POINTER_TAG,
                     offsets.get(MetadataSection.INTEROP))

        out = bytearray(b'II')
        out += struct.pack('<HI', 42, TIFF_HEADER_SIZE)
        for section in _SECTION_ORDER:
            if section in directories:
                out += _build_directory(directories[section], offsets[section])

        if len(out) + len(EXIF_SIGNATURE) > MAX_APP1_PAYLOAD:
            logger.warning("EXIF block is %d bytes, larger than one APP1 segment",
                           len(out))
        return bytes(out)

    def create_exif_app1_payload(self) -> bytes:
        """Return the APP1 payload: ``Exif\\0\\0`` followed by the TIFF block."""
        return EXIF_SIGNATURE + self.write()

    def _group_fields(self) -> Dict[MetadataSection, List[_Field]]:
        grouped: Dict[MetadataSection, List[_Field]] = {s: [] for s in _SECTION_ORDER}

        for entry in self._entries.values():
            if entry.tag_id in SUB_IFD_POINTERS[entry.section]:
                # Recomputed below from the actual layout.
                continue
            size = type_size(entry.type)
            if entry.length_in_bytes % size:
                raise ValueError(
                    f'{entry!r}: payload length is not a multiple of the '
                    f'{entry.type.name} element size ({size})')
            grouped[entry.section].append(
                _Field(entry.tag_id, entry.type, entry.length_in_bytes // size,
                       entry.data))

        if grouped[MetadataSection.INTEROP]:
            grouped[MetadataSection.EXIF].append(
                _pointer_field(INTEROP_IFD_POINTER_TAG))
        if grouped[MetadataSection.EXIF]:
            grouped[MetadataSection.IMAGE].append(
                _pointer_field(EXIF_IFD_POINTER_TAG))
        if grouped[MetadataSection.GPS]:
            grouped[MetadataSection.IMAGE].append(
                _pointer_field(GPS_IFD_POINTER_TAG))

        directories = {MetadataSection.IMAGE: grouped[MetadataSection.IMAGE]}
        for section in _SECTION_ORDER[1:]:
            if grouped[section]:
                directories[section] = grouped[section]
        for fields in directories.values():
            fields.sort(key=lambda f: f.tag)
        return directories

    @staticmethod
    def _layout(directories: Dict[MetadataSection, List[_Field]]) -> Dict[MetadataSection, int]:
        offsets = {}
        offset = TIFF_HEADER_SIZE
        for section in _SECTION_ORDER:
            if section in directories:
                offsets[section] = offset
                offset += _directory_size(directories[section])
        return offsets


def write_exif(metadata, color_space: Optional[ExifColorSpace] = None) -> bytes:
    """Serialize ``metadata`` as a TIFF-format EXIF block."""
    return ExifWriter(metadata, color_space).write()


def _pointer_field(tag: int) -> _Field:
    return _Field(tag, TagDataType.LONG, 1, encode_long(0))


def _set_pointer(directories, section, tag, target_offset):
    if target_offset is None or section not in directories:
        return
    for f in directories[section]:
        if f.tag == tag:
            f.data = encode_long(target_offset)


def _padded(length: int) -> int:
    # Out-of-line values start on a word boundary.
    return length + (length & 1)


def _directory_size(fields: List[_Field]) -> int:
    size = 2 + 12 * len(fields) + 4
    for f in fields:
        if len(f.data) > 4:
            size += _padded(len(f.data))
    return size


def _build_directory(fields: List[_Field], ifd_offset: int) -> bytes:
    header = bytearray(struct.pack('<H', len(fields)))
    values = bytearray()
    value_offset = ifd_offset + 2 + 12 * len(fields) + 4

    for f in fields:
        header += struct.pack('<HHI', f.tag, int(f.dtype), f.count)
        if len(f.data) <= 4:
            header += f.data.ljust(4, b'\x00')
        else:
            header += struct.pack('<I', value_offset + len(values))
            values += f.data
            if len(f.data) & 1:
                values += b'\x00'

    header += struct.pack('<I', 0)  # no next IFD
    return bytes(header + values)
