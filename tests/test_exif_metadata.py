"""Tests for jpegmeta/exif/metadata.py -- keys, entries, collections, IFD records."""

import struct

import pytest

from jpegmeta.exif.metadata import (
    ExifValueCollection,
    IFDEntry,
    MetadataEntry,
    MetadataKey,
    MetadataSection,
    TagDataType,
    decode_values,
    encode_long,
    encode_short,
    from_host_section,
    swap_element_order,
    to_host_section,
    try_decode_short,
    type_size,
    unique_by_key,
)
from jpegmeta.exif.reader import EndianBinaryReader, Endianness
from jpegmeta.exif.tags import MetadataKeys, tag_name
from jpegmeta.models import ExifPropertyItem, ExifSection


class TestMetadataKey:
    def test_value_equality(self):
        a = MetadataKey(MetadataSection.IMAGE, 0x0112)
        b = MetadataKey(MetadataSection.IMAGE, 0x0112)
        assert a == b
        assert hash(a) == hash(b)

    def test_section_distinguishes(self):
        assert MetadataKey(MetadataSection.GPS, 1) != MetadataKey(MetadataSection.INTEROP, 1)

    def test_tag_range(self):
        with pytest.raises(ValueError):
            MetadataKey(MetadataSection.IMAGE, 0x10000)
        with pytest.raises(ValueError):
            MetadataKey(MetadataSection.IMAGE, -1)

    def test_repr(self):
        assert repr(MetadataKeys.Image.ORIENTATION) == 'MetadataKey(Image, 0x0112)'


class TestMetadataEntry:
    def test_equality_by_key_only(self):
        a = MetadataEntry(MetadataSection.IMAGE, 0x010F, TagDataType.ASCII, b'A\x00')
        b = MetadataEntry(MetadataSection.IMAGE, 0x010F, TagDataType.ASCII, b'B\x00')
        assert a == b
        assert len({a, b}) == 1

    def test_payload_is_copied(self):
        data = bytearray(b'\x01\x00')
        entry = MetadataEntry(MetadataSection.IMAGE, 0x0112, TagDataType.SHORT, data)
        data[0] = 9
        assert entry.data == b'\x01\x00'
        assert isinstance(entry.data, bytes)

    def test_none_data_rejected(self):
        with pytest.raises(TypeError):
            MetadataEntry(MetadataSection.IMAGE, 1, TagDataType.BYTE, None)

    def test_count_and_length(self):
        entry = MetadataEntry(MetadataSection.EXIF, 0x829A, TagDataType.RATIONAL,
                              struct.pack('<IIII', 1, 2, 3, 4))
        assert entry.length_in_bytes == 16
        assert entry.count == 2

    def test_property_item_round_trip(self):
        entry = MetadataEntry(MetadataSection.GPS, 2, TagDataType.RATIONAL, bytes(24))
        item = entry.to_property_item()
        assert item == ExifPropertyItem(ExifSection.GPS_INFO, 2, 5, bytes(24))
        back = MetadataEntry.from_property_item(item)
        assert back == entry
        assert back.type is TagDataType.RATIONAL
        assert back.data == entry.data


class TestSectionMapping:
    @pytest.mark.parametrize('section,host', [
        (MetadataSection.IMAGE, ExifSection.IMAGE),
        (MetadataSection.EXIF, ExifSection.PHOTO),
        (MetadataSection.GPS, ExifSection.GPS_INFO),
        (MetadataSection.INTEROP, ExifSection.INTEROP),
    ])
    def test_mapping(self, section, host):
        assert to_host_section(section) is host
        assert from_host_section(host) is section

    def test_unmapped_rejected(self):
        with pytest.raises(ValueError):
            to_host_section('Image')
        with pytest.raises(ValueError):
            from_host_section('Photo')


class TestExifValueCollection:
    def _entries(self):
        return [
            MetadataEntry(MetadataSection.IMAGE, 0x0112, TagDataType.SHORT, b'\x03\x00'),
            MetadataEntry(MetadataSection.IMAGE, 0x010F, TagDataType.ASCII, b'X\x00'),
            MetadataEntry(MetadataSection.EXIF, 0x0112, TagDataType.SHORT, b'\x01\x00'),
        ]

    def test_len_iter_contains(self):
        coll = ExifValueCollection(self._entries())
        assert len(coll) == 3
        assert MetadataKeys.Image.ORIENTATION in coll
        assert [e.tag_id for e in coll] == [0x0112, 0x010F, 0x0112]

    def test_get_and_remove(self):
        coll = ExifValueCollection(self._entries())
        entry = coll.get_and_remove_value(MetadataKeys.Image.ORIENTATION)
        assert entry.data == b'\x03\x00'
        assert MetadataKeys.Image.ORIENTATION not in coll
        # Same tag in another section is untouched.
        assert MetadataKey(MetadataSection.EXIF, 0x0112) in coll
        assert len(coll) == 2

    def test_get_and_remove_missing(self):
        coll = ExifValueCollection(self._entries())
        assert coll.get_and_remove_value(MetadataKey(MetadataSection.GPS, 1)) is None
        assert len(coll) == 3

    def test_remove_removes_duplicates(self):
        entries = self._entries() + [
            MetadataEntry(MetadataSection.IMAGE, 0x0112, TagDataType.SHORT, b'\x08\x00')]
        coll = ExifValueCollection(entries)
        coll.remove(MetadataKeys.Image.ORIENTATION)
        assert MetadataKeys.Image.ORIENTATION not in coll
        assert len(coll) == 2

    def test_remove_missing_is_noop(self):
        coll = ExifValueCollection(self._entries())
        coll.remove(MetadataKeys.Image.INTER_COLOR_PROFILE)
        assert len(coll) == 3

    def test_none_rejected(self):
        with pytest.raises(TypeError):
            ExifValueCollection(None)

    def test_to_dict_first_wins(self):
        entries = [
            MetadataEntry(MetadataSection.IMAGE, 1, TagDataType.BYTE, b'\x01'),
            MetadataEntry(MetadataSection.IMAGE, 1, TagDataType.BYTE, b'\x02'),
        ]
        d = ExifValueCollection(entries).to_dict()
        assert list(d.values())[0].data == b'\x01'


class TestIFDEntry:
    def test_read_little_endian(self):
        raw = struct.pack('<HHII', 0x0112, 3, 1, 6)
        with EndianBinaryReader.from_bytes(raw, Endianness.LITTLE) as r:
            entry = IFDEntry.read(r)
        assert entry == IFDEntry(0x0112, 3, 1, 6)

    def test_read_big_endian(self):
        raw = struct.pack('>HHII', 0x8769, 4, 1, 26)
        with EndianBinaryReader.from_bytes(raw, Endianness.BIG) as r:
            assert IFDEntry.read(r) == IFDEntry(0x8769, 4, 1, 26)

    def test_pack(self):
        entry = IFDEntry(1, 2, 3, 4)
        assert len(entry.pack()) == IFDEntry.SIZE
        assert entry.pack('>') == struct.pack('>HHII', 1, 2, 3, 4)


class TestPayloadHelpers:
    def test_encode(self):
        assert encode_short(0xFFFF) == b'\xff\xff'
        assert encode_long(0x01020304) == b'\x04\x03\x02\x01'

    def test_try_decode_short(self):
        entry = MetadataEntry(MetadataSection.IMAGE, 0x0112, TagDataType.SHORT, b'\x06\x00')
        assert try_decode_short(entry) == 6

    def test_try_decode_short_wrong_type(self):
        entry = MetadataEntry(MetadataSection.IMAGE, 0x0112, TagDataType.LONG, bytes(4))
        assert try_decode_short(entry) is None

    def test_try_decode_short_wrong_length(self):
        entry = MetadataEntry(MetadataSection.IMAGE, 0x0112, TagDataType.SHORT, bytes(4))
        assert try_decode_short(entry) is None

    def test_type_sizes(self):
        assert type_size(TagDataType.ASCII) == 1
        assert type_size(TagDataType.SHORT) == 2
        assert type_size(TagDataType.RATIONAL) == 8
        assert type_size(TagDataType.DOUBLE) == 8

    def test_swap_rational_swaps_halves_separately(self):
        data = struct.pack('>II', 1, 2)
        assert swap_element_order(data, TagDataType.RATIONAL) == struct.pack('<II', 1, 2)

    def test_swap_bytes_untouched(self):
        assert swap_element_order(b'abc', TagDataType.ASCII) == b'abc'

    def test_decode_values(self):
        ascii_entry = MetadataEntry(MetadataSection.IMAGE, 0x010F, TagDataType.ASCII, b'Nikon\x00')
        assert decode_values(ascii_entry) == 'Nikon'
        rational = MetadataEntry(MetadataSection.EXIF, 0x829A, TagDataType.RATIONAL,
                                 struct.pack('<II', 1, 125))
        assert decode_values(rational) == (1, 125)
        shorts = MetadataEntry(MetadataSection.IMAGE, 0x0102, TagDataType.SHORT,
                               struct.pack('<HHH', 8, 8, 8))
        assert decode_values(shorts) == [8, 8, 8]

    def test_unique_by_key_first_wins(self):
        a = MetadataEntry(MetadataSection.IMAGE, 1, TagDataType.BYTE, b'\x01')
        b = MetadataEntry(MetadataSection.IMAGE, 1, TagDataType.BYTE, b'\x02')
        result = unique_by_key([a, b])
        assert result[a.key].data == b'\x01'


class TestTagNames:
    def test_known(self):
        assert tag_name(MetadataSection.IMAGE, 0x0112) == 'Orientation'

    def test_unknown(self):
        assert tag_name(MetadataSection.GPS, 0xBEEF) == 'Tag_0xBEEF'
