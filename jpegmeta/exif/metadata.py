"""EXIF metadata value types: sections, keys, entries, and IFD records."""

import enum
import struct
from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from jpegmeta.models import ExifPropertyItem, ExifSection


class MetadataSection(enum.Enum):
    """Logical IFD a tag belongs to."""
    IMAGE = 'Image'
    EXIF = 'Exif'
    GPS = 'Gps'
    INTEROP = 'Interop'


class TagDataType(enum.IntEnum):
    """TIFF field types."""
    BYTE = 1
    ASCII = 2
    SHORT = 3
    LONG = 4
    RATIONAL = 5
    SBYTE = 6
    UNDEFINED = 7
    SSHORT = 8
    SLONG = 9
    SRATIONAL = 10
    FLOAT = 11
    DOUBLE = 12
    IFD = 13


class ExifColorSpace(enum.IntEnum):
    SRGB = 1
    UNCALIBRATED = 0xFFFF


# {type: (element_size_bytes, byte_swap_unit)}
# RATIONAL values are two LONGs, so their bytes swap in 4-byte units.
TAG_TYPE_SIZES: Dict[TagDataType, Tuple[int, int]] = {
    TagDataType.BYTE: (1, 1),
    TagDataType.ASCII: (1, 1),
    TagDataType.SHORT: (2, 2),
    TagDataType.LONG: (4, 4),
    TagDataType.RATIONAL: (8, 4),
    TagDataType.SBYTE: (1, 1),
    TagDataType.UNDEFINED: (1, 1),
    TagDataType.SSHORT: (2, 2),
    TagDataType.SLONG: (4, 4),
    TagDataType.SRATIONAL: (8, 4),
    TagDataType.FLOAT: (4, 4),
    TagDataType.DOUBLE: (8, 8),
    TagDataType.IFD: (4, 4),
}


def type_size(dtype: TagDataType) -> int:
    return TAG_TYPE_SIZES[dtype][0]


def swap_element_order(data: bytes, dtype: TagDataType) -> bytes:
    """Reverse the byte order of every element in ``data``."""
    unit = TAG_TYPE_SIZES[dtype][1]
    if unit == 1:
        return bytes(data)
    out = bytearray(len(data))
    for i in range(0, len(data) - len(data) % unit, unit):
        out[i:i + unit] = data[i:i + unit][::-1]
    return bytes(out)


@dataclass(frozen=True)
class MetadataKey:
    """Identity of a metadata entry within one image."""
    section: MetadataSection
    tag_id: int

    def __post_init__(self):
        if not 0 <= self.tag_id <= 0xFFFF:
            raise ValueError(f'tag id out of range: {self.tag_id}')

    def __repr__(self) -> str:
        return f'MetadataKey({self.section.value}, 0x{self.tag_id:04X})'


class MetadataEntry:
    """An immutable (section, tag, type, payload) record.

    Payload bytes are stored in little-endian element order. Two entries are
    equal when their keys are equal; the payload does not take part.
    """
    __slots__ = ('_section', '_tag_id', '_type', '_data')

    def __init__(self, section: MetadataSection, tag_id: int,
                 dtype: TagDataType, data: bytes):
        if data is None:
            raise TypeError('data must not be None')
        key = MetadataKey(section, tag_id)
        self._section = key.section
        self._tag_id = key.tag_id
        self._type = TagDataType(dtype)
        self._data = bytes(data)

    @classmethod
    def from_key(cls, key: MetadataKey, dtype: TagDataType,
                 data: bytes) -> 'MetadataEntry':
        return cls(key.section, key.tag_id, dtype, data)

    @property
    def section(self) -> MetadataSection:
        return self._section

    @property
    def tag_id(self) -> int:
        return self._tag_id

    @property
    def type(self) -> TagDataType:
        return self._type

    @property
    def key(self) -> MetadataKey:
        return MetadataKey(self._section, self._tag_id)

    @property
    def data(self) -> bytes:
        return self._data

    @property
    def length_in_bytes(self) -> int:
        return len(self._data)

    @property
    def count(self) -> int:
        """Number of elements of ``type`` in the payload."""
        return len(self._data) // type_size(self._type)

    def to_property_item(self) -> ExifPropertyItem:
        return ExifPropertyItem(to_host_section(self._section), self._tag_id,
                                int(self._type), self._data)

    @classmethod
    def from_property_item(cls, item: ExifPropertyItem) -> 'MetadataEntry':
        return cls(from_host_section(item.section), item.tag_id,
                   TagDataType(item.value_type), item.data)

    def __eq__(self, other):
        if not isinstance(other, MetadataEntry):
            return NotImplemented
        return self._section == other._section and self._tag_id == other._tag_id

    def __hash__(self):
        return hash((self._section, self._tag_id))

    def __repr__(self) -> str:
        return (f'MetadataEntry({self._section.value}, Tag# {self._tag_id} '
                f'(0x{self._tag_id:X}), {self._type.name}, {len(self._data)} bytes)')


def to_host_section(section: MetadataSection) -> ExifSection:
    if section is MetadataSection.IMAGE:
        return ExifSection.IMAGE
    elif section is MetadataSection.EXIF:
        return ExifSection.PHOTO
    elif section is MetadataSection.GPS:
        return ExifSection.GPS_INFO
    elif section is MetadataSection.INTEROP:
        return ExifSection.INTEROP
    raise ValueError(f'Unexpected MetadataSection: {section!r}')


def from_host_section(section: ExifSection) -> MetadataSection:
    if section is ExifSection.IMAGE:
        return MetadataSection.IMAGE
    elif section is ExifSection.PHOTO:
        return MetadataSection.EXIF
    elif section is ExifSection.GPS_INFO:
        return MetadataSection.GPS
    elif section is ExifSection.INTEROP:
        return MetadataSection.INTEROP
    raise ValueError(f'Unexpected ExifSection: {section!r}')


class ExifValueCollection:
    """Ordered entries parsed from one EXIF block."""

    def __init__(self, items: List[MetadataEntry]):
        if items is None:
            raise TypeError('items must not be None')
        self._items = items

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[MetadataEntry]:
        return iter(self._items)

    def __contains__(self, key) -> bool:
        return self.get(key) is not None

    def get(self, key: MetadataKey) -> Optional[MetadataEntry]:
        for entry in self._items:
            if entry.section == key.section and entry.tag_id == key.tag_id:
                return entry
        return None

    def get_and_remove_value(self, key: MetadataKey) -> Optional[MetadataEntry]:
        """Return the first entry with ``key`` and remove every entry with it."""
        value = self.get(key)
        if value is not None:
            self.remove(key)
        return value

    def remove(self, key: MetadataKey):
        self._items = [e for e in self._items
                       if not (e.section == key.section and e.tag_id == key.tag_id)]

    def to_dict(self) -> Dict[MetadataKey, MetadataEntry]:
        return unique_by_key(self._items)

    def __repr__(self) -> str:
        return f'ExifValueCollection(Count = {len(self._items)})'


@dataclass(frozen=True)
class IFDEntry:
    """A 12-byte TIFF directory record."""
    tag: int
    type: int
    count: int
    offset: int

    SIZE = 12

    @classmethod
    def read(cls, reader) -> 'IFDEntry':
        tag = reader.read_uint16()
        dtype = reader.read_uint16()
        count = reader.read_uint32()
        offset = reader.read_uint32()
        return cls(tag, dtype, count, offset)

    def pack(self, endian: str = '<') -> bytes:
        return struct.pack(endian + 'HHII', self.tag, self.type,
                           self.count, self.offset)


# -- payload helpers --------------------------------------------------------

def encode_short(value: int) -> bytes:
    return struct.pack('<H', value)


def encode_long(value: int) -> bytes:
    return struct.pack('<I', value)


def try_decode_short(entry: MetadataEntry) -> Optional[int]:
    """Decode a single SHORT entry, or None if it is not one."""
    if entry.type != TagDataType.SHORT or entry.length_in_bytes != 2:
        return None
    return struct.unpack('<H', entry.data)[0]


def decode_values(entry: MetadataEntry) -> object:
    """Decode an entry payload into Python values for display.

    ASCII becomes a str, BYTE/UNDEFINED stay bytes, rationals become
    (numerator, denominator) tuples. Single values are unwrapped.
    """
    dtype = entry.type
    data = entry.data
    if dtype == TagDataType.ASCII:
        return data.split(b'\x00', 1)[0].decode('ascii', errors='replace')
    if dtype in (TagDataType.BYTE, TagDataType.UNDEFINED):
        return data

    fmt = {
        TagDataType.SHORT: 'H', TagDataType.LONG: 'I', TagDataType.SBYTE: 'b',
        TagDataType.SSHORT: 'h', TagDataType.SLONG: 'i', TagDataType.FLOAT: 'f',
        TagDataType.DOUBLE: 'd', TagDataType.IFD: 'I',
        TagDataType.RATIONAL: 'II', TagDataType.SRATIONAL: 'ii',
    }[dtype]
    n = entry.count
    values = list(struct.unpack('<' + fmt * n, data[:n * type_size(dtype)]))
    if dtype in (TagDataType.RATIONAL, TagDataType.SRATIONAL):
        values = list(zip(values[0::2], values[1::2]))
    if len(values) == 1:
        return values[0]
    return values


def unique_by_key(entries: Iterable[MetadataEntry]) -> Dict[MetadataKey, MetadataEntry]:
    """Index entries by key; the first entry for a key wins."""
    result: Dict[MetadataKey, MetadataEntry] = {}
    for entry in entries:
        result.setdefault(entry.key, entry)
    return result
