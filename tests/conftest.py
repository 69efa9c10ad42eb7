"""Shared test fixtures -- synthetic EXIF blocks, XMP packets and JPEG files."""

import io
import struct

import pytest
from PIL import Image

# Placeholder for a sub-IFD pointer value; replaced with the real offset.
POINTER = object()

EXIF_POINTER = 0x8769
GPS_POINTER = 0x8825
INTEROP_POINTER = 0xA005

STANDARD_XMP_PREFIX = b'http://ns.adobe.com/xap/1.0/\x00'
EXTENDED_XMP_PREFIX = b'http://ns.adobe.com/xmp/extension/\x00'


def _inline_value(type_id, value, endian):
    """Pack an int inline value into the 4-byte offset field, left-justified."""
    if type_id in (1, 6, 7):
        return bytes([value]) + b'\x00' * 3
    if type_id in (3, 8):
        return struct.pack(endian + 'H', value) + b'\x00' * 2
    return struct.pack(endian + 'I', value)


def _ifd_size(entries):
    ool = sum(len(v) for _, _, _, v in entries if isinstance(v, bytes) and len(v) > 4)
    return 2 + 12 * len(entries) + 4 + ool


def _pack_ifd(entries, ifd_offset, endian, pointers):
    ool_start = ifd_offset + 2 + 12 * len(entries) + 4
    ifd_bytes = struct.pack(endian + 'H', len(entries))
    data_bytes = b''

    for tag_id, type_id, count, value in entries:
        if value is POINTER:
            value = pointers[tag_id]
        ifd_bytes += struct.pack(endian + 'HHI', tag_id, type_id, count)
        if isinstance(value, bytes):
            if len(value) > 4:
                ifd_bytes += struct.pack(endian + 'I', ool_start + len(data_bytes))
                data_bytes += value
            else:
                ifd_bytes += value.ljust(4, b'\x00')
        else:
            ifd_bytes += _inline_value(type_id, value, endian)

    ifd_bytes += struct.pack(endian + 'I', 0)  # No next IFD
    return ifd_bytes + data_bytes


def build_exif(ifd0, exif=None, gps=None, interop=None, endian='<'):
    """Build a TIFF-format EXIF block with optional Exif/GPS/Interop sub-IFDs.

    Args:
        ifd0: List of (tag_id, type_id, count, value) tuples for IFD0.
            Int values are packed inline by type; bytes longer than 4 go
            out of line, shorter bytes are stored inline as given (file
            byte order).
        exif, gps, interop: Entry lists for the sub-IFDs, or None to omit.
            Pointer tags are added automatically.
        endian: '<' for little-endian, '>' for big-endian.

    Returns:
        bytes: TIFF header followed by the directories, no APP1 signature.
    """
    ifd0 = list(ifd0)
    exif_entries = list(exif) if exif is not None else None
    if interop is not None:
        exif_entries = (exif_entries or []) + [(INTEROP_POINTER, 4, 1, POINTER)]
    if exif_entries is not None:
        ifd0.append((EXIF_POINTER, 4, 1, POINTER))
    if gps is not None:
        ifd0.append((GPS_POINTER, 4, 1, POINTER))

    directories = [('ifd0', ifd0), ('exif', exif_entries), ('gps', gps),
                   ('interop', interop)]
    directories = [(name, entries) for name, entries in directories if entries is not None]

    offsets = {}
    offset = 8
    for name, entries in directories:
        offsets[name] = offset
        offset += _ifd_size(entries)

    pointers = {
        EXIF_POINTER: offsets.get('exif'),
        GPS_POINTER: offsets.get('gps'),
        INTEROP_POINTER: offsets.get('interop'),
    }

    bo = b'II' if endian == '<' else b'MM'
    result = bo + struct.pack(endian + 'H', 42) + struct.pack(endian + 'I', 8)
    for name, entries in directories:
        result += _pack_ifd(entries, offsets[name], endian, pointers)
    return result


def exif_app1(tiff):
    return b'Exif\x00\x00' + tiff


def build_xmp_packet(*descriptions):
    """Wrap rdf:Description elements (str) in a complete xpacket."""
    body = '\n'.join(descriptions)
    return (
        '<?xpacket begin="\ufeff" id="W5M0MpCehiHzreSzNTczkc9d"?>\n'
        '<x:xmpmeta xmlns:x="adobe:ns:meta/">\n'
        '<rdf:RDF xmlns:rdf="http://www.w3.org/1999/02/22-rdf-syntax-ns#">\n'
        f'{body}\n'
        '</rdf:RDF>\n'
        '</x:xmpmeta>\n'
        '<?xpacket end="w"?>'
    ).encode('utf-8')


def build_large_xmp_packet(size):
    """A well-formed packet of at least ``size`` bytes."""
    head = build_xmp_packet(
        '<rdf:Description rdf:about="" xmlns:test="http://example.com/test/">'
        '<test:Blob></test:Blob></rdf:Description>')
    filler = 'A' * max(0, size - len(head))
    return head.replace(b'<test:Blob></test:Blob>',
                        f'<test:Blob>{filler}</test:Blob>'.encode('ascii'))


def build_jpeg(size=(16, 12), color=(200, 30, 30), mode='RGB', app1=(), icc_profile=None):
    """Encode a solid-colour JPEG with Pillow and splice in raw APP1 payloads."""
    im = Image.new(mode, size, color)
    buf = io.BytesIO()
    kwargs = {'quality': 90}
    if icc_profile:
        kwargs['icc_profile'] = icc_profile
    im.save(buf, format='JPEG', **kwargs)
    data = buf.getvalue()

    segments = b''.join(
        b'\xff\xe1' + struct.pack('>H', len(payload) + 2) + payload
        for payload in app1)
    return data[:2] + segments + data[2:]


# ---------------------------------------------------------------------------
# EXIF fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def orientation_exif():
    """The smallest useful EXIF block: IFD0 with Orientation = 3."""
    return bytes.fromhex('4949 2A00 08000000 0100 1201 0300 01000000 03000000')


@pytest.fixture
def camera_exif():
    """EXIF block with entries in every section."""
    make = b'Canon\x00'
    model = b'EOS R5 test body\x00'
    exposure = struct.pack('<II', 1, 250)
    latitude = struct.pack('<IIIIII', 51, 1, 30, 1, 0, 1)
    return build_exif(
        ifd0=[
            (0x010F, 2, len(make), make),
            (0x0110, 2, len(model), model),
            (0x0112, 3, 1, 6),
        ],
        exif=[
            (0x829A, 5, 1, exposure),
            (0x8827, 3, 1, 400),
        ],
        gps=[
            (0x0001, 2, 2, b'N\x00'),
            (0x0002, 5, 3, latitude),
        ],
        interop=[
            (0x0001, 2, 4, b'R98\x00'),
        ],
    )


@pytest.fixture
def tmp_jpeg(tmp_path, camera_exif):
    """JPEG with EXIF and a small standard XMP packet."""
    xmp = build_xmp_packet(
        '<rdf:Description rdf:about="" xmlns:dc="http://purl.org/dc/elements/1.1/"'
        ' xmlns:xmp="http://ns.adobe.com/xap/1.0/" xmp:Rating="4">'
        '<dc:format>image/jpeg</dc:format></rdf:Description>')
    content = build_jpeg(app1=[exif_app1(camera_exif), STANDARD_XMP_PREFIX + xmp])
    filepath = tmp_path / 'photo.jpg'
    filepath.write_bytes(content)
    return filepath


@pytest.fixture
def tmp_jpeg_plain(tmp_path):
    """JPEG without any APP1 metadata."""
    filepath = tmp_path / 'plain.jpg'
    filepath.write_bytes(build_jpeg())
    return filepath
