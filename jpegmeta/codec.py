"""JPEG codec boundary.

The metadata codecs never touch compressed image data. A JpegCodec decodes
a stream into pixels plus raw metadata payloads, and encodes pixels plus
prepared payloads back into a stream. PillowJpegCodec is the stock
implementation.
"""

import io
import struct
from abc import ABC, abstractmethod
from typing import BinaryIO, Iterable, List, Optional, Tuple

from PIL import Image

from jpegmeta.models import DecodedJpeg, EncodeOptions, MetadataParams
from jpegmeta.xmp.constants import EXTENDED_XMP_PREFIX, STANDARD_XMP_PREFIX

EXIF_SIGNATURES = (b'Exif\x00\x00', b'Exif\x00\xff')
EXIF_SIGNATURE_LENGTH = 6

_SOI = b'\xff\xd8'
_APP0 = 0xE0
_APP1 = 0xE1
MAX_SEGMENT_PAYLOAD = 65533

# Pillow's subsampling codes
_PIL_SUBSAMPLING = {'4:4:4': 0, '4:2:2': 1, '4:2:0': 2}


class JpegCodec(ABC):
    """Base class for JPEG codec collaborators."""

    @abstractmethod
    def decode(self, stream: BinaryIO) -> DecodedJpeg:
        """Decode ``stream`` into an image plus its raw metadata payloads."""
        ...

    @abstractmethod
    def encode(self, image, stream: BinaryIO, metadata: MetadataParams,
               options: EncodeOptions):
        """Encode ``image`` to ``stream``, embedding the ``metadata`` payloads."""
        ...


def classify_app1_payloads(
        payloads: Iterable[bytes]) -> Tuple[Optional[bytes], Optional[bytes], List[bytes]]:
    """Sort APP1 payloads into (exif, standard_xmp, extended_xmp).

    Signatures are stripped. Only the first EXIF and the first standard XMP
    payload are kept; every extended XMP payload is kept, in order.
    """
    exif = None
    standard_xmp = None
    extended_xmp = []

    for data in payloads:
        if len(data) > EXIF_SIGNATURE_LENGTH and data[:EXIF_SIGNATURE_LENGTH] in EXIF_SIGNATURES:
            if exif is None:
                exif = data[EXIF_SIGNATURE_LENGTH:]
        elif len(data) > len(STANDARD_XMP_PREFIX) and data.startswith(STANDARD_XMP_PREFIX):
            if standard_xmp is None:
                standard_xmp = data[len(STANDARD_XMP_PREFIX):]
        elif len(data) > len(EXTENDED_XMP_PREFIX) and data.startswith(EXTENDED_XMP_PREFIX):
            extended_xmp.append(data[len(EXTENDED_XMP_PREFIX):])

    return exif, standard_xmp, extended_xmp


def build_app1_segment(payload: bytes) -> bytes:
    if len(payload) > MAX_SEGMENT_PAYLOAD:
        raise ValueError(
            f'APP1 payload of {len(payload)} bytes exceeds {MAX_SEGMENT_PAYLOAD}')
    return b'\xff' + bytes([_APP1]) + struct.pack('>H', len(payload) + 2) + payload


def insert_app1_segments(jpeg: bytes, payloads: List[bytes]) -> bytes:
    """Insert APP1 segments after SOI and any leading APP0 (JFIF) segment."""
    if not jpeg.startswith(_SOI):
        raise ValueError('not a JPEG stream: missing SOI marker')
    if not payloads:
        return jpeg

    pos = len(_SOI)
    while pos + 4 <= len(jpeg) and jpeg[pos] == 0xFF and jpeg[pos + 1] == _APP0:
        (length,) = struct.unpack_from('>H', jpeg, pos + 2)
        pos += 2 + length

    segments = b''.join(build_app1_segment(p) for p in payloads)
    return jpeg[:pos] + segments + jpeg[pos:]


def app1_payloads_for(metadata: MetadataParams) -> List[bytes]:
    """APP1 payloads in write order: EXIF, standard XMP, extended XMP chunks."""
    payloads = []
    if metadata.exif:
        payloads.append(metadata.exif)
    if metadata.standard_xmp:
        payloads.append(metadata.standard_xmp)
        payloads.extend(c for c in metadata.extended_xmp_chunks if c)
    return payloads


class PillowJpegCodec(JpegCodec):
    """JpegCodec backed by Pillow."""

    def decode(self, stream: BinaryIO) -> DecodedJpeg:
        with Image.open(stream) as im:
            if im.format not in ('JPEG', 'MPO'):
                raise ValueError(f'not a JPEG image: {im.format}')
            im.load()
            app1 = [data for marker, data in getattr(im, 'applist', [])
                    if marker == 'APP1']
            icc_profile = im.info.get('icc_profile') or None
            image = im.copy()

        exif, standard_xmp, extended_xmp = classify_app1_payloads(app1)
        return DecodedJpeg(image=image, exif=exif, icc_profile=icc_profile,
                           standard_xmp=standard_xmp, extended_xmp=extended_xmp)

    def encode(self, image, stream: BinaryIO, metadata: MetadataParams,
               options: EncodeOptions):
        save_kwargs = {
            'quality': options.quality,
            'progressive': options.progressive,
            'optimize': True,
            # APP1 segments are spliced in below, not written by Pillow.
            'exif': b'',
            'xmp': b'',
        }
        if options.chroma_subsampling == '4:0:0':
            image = image.convert('L')
        else:
            if image.mode not in ('RGB', 'L', 'CMYK'):
                image = image.convert('RGB')
            save_kwargs['subsampling'] = _PIL_SUBSAMPLING[options.chroma_subsampling]
        if metadata.icc_profile:
            save_kwargs['icc_profile'] = metadata.icc_profile

        buf = io.BytesIO()
        image.save(buf, format='JPEG', **save_kwargs)
        stream.write(insert_app1_segments(buf.getvalue(), app1_payloads_for(metadata)))
