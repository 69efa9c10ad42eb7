"""Load and save orchestration.

load() turns a JPEG stream into an image plus host metadata: parsed EXIF
properties (with Orientation pulled out), the ICC profile and the resolved
XMP document. save() goes the other way, preparing every metadata payload
before handing the image to the codec.
"""

import logging
from dataclasses import replace
from typing import BinaryIO, Iterable, Optional, Union

from lxml import etree
from PIL import Image, ImageChops

from jpegmeta.buffers import BufferPool
from jpegmeta.codec import JpegCodec, PillowJpegCodec
from jpegmeta.config import CodecConfig
from jpegmeta.exif.metadata import (
    ExifColorSpace,
    MetadataEntry,
    TagDataType,
    to_host_section,
    try_decode_short,
    unique_by_key,
)
from jpegmeta.exif.parser import parse as parse_exif
from jpegmeta.exif.tags import MetadataKeys
from jpegmeta.exif.writer import ExifWriter
from jpegmeta.models import (
    EncodeOptions,
    ExifPropertyItem,
    LoadResult,
    MetadataParams,
)
from jpegmeta.xmp.extended import split_xmp_packet
from jpegmeta.xmp.merge import resolve_xmp_packet, serialize_xmp

logger = logging.getLogger(__name__)

# EXIF Orientation values: TopLeft .. LeftBottom
ORIENTATION_MIN = 1
ORIENTATION_MAX = 8


def load(stream: BinaryIO, codec: Optional[JpegCodec] = None,
         pool: Optional[BufferPool] = None,
         config: Optional[CodecConfig] = None) -> LoadResult:
    """Decode a JPEG and collect its metadata.

    Truncated or malformed EXIF aborts the load. Unusable extended XMP
    only reduces the result to the standard XMP packet.
    """
    if codec is None:
        codec = PillowJpegCodec()

    decoded = codec.decode(stream)
    result = LoadResult(image=decoded.image)

    if decoded.exif:
        exif_values = parse_exif(decoded.exif, pool, config)

        orientation = exif_values.get_and_remove_value(MetadataKeys.Image.ORIENTATION)
        if orientation is not None:
            value = try_decode_short(orientation)
            if value is not None and ORIENTATION_MIN <= value <= ORIENTATION_MAX:
                result.orientation = value
            else:
                result.warnings.append(f'Ignored invalid EXIF orientation {value!r}')

        # Replaced by the codec's ICC profile below.
        exif_values.remove(MetadataKeys.Image.INTER_COLOR_PROFILE)
        result.properties = [entry.to_property_item() for entry in exif_values]

    if decoded.icc_profile:
        key = MetadataKeys.Image.INTER_COLOR_PROFILE
        result.properties.append(ExifPropertyItem(
            to_host_section(key.section), key.tag_id,
            int(TagDataType.UNDEFINED), bytes(decoded.icc_profile)))

    if decoded.standard_xmp:
        result.xmp = resolve_xmp_packet(decoded.standard_xmp, decoded.extended_xmp, pool)
        if result.xmp is None:
            result.warnings.append('Ignored malformed XMP packet')

    for warning in result.warnings:
        logger.warning(warning)
    return result


def create_metadata_params(properties: Iterable[ExifPropertyItem] = (),
                           xmp: Union[None, bytes, etree._ElementTree] = None,
                           config: Optional[CodecConfig] = None) -> MetadataParams:
    """Build the APP1/ICC payloads for saving.

    An InterColorProfile property becomes the ICC payload and switches the
    EXIF color space to Uncalibrated; otherwise sRGB is recorded.
    """
    params = MetadataParams()

    entries = unique_by_key(MetadataEntry.from_property_item(p) for p in properties)
    if entries:
        color_space = ExifColorSpace.SRGB
        icc_entry = entries.pop(MetadataKeys.Image.INTER_COLOR_PROFILE, None)
        if icc_entry is not None:
            params.icc_profile = icc_entry.data
            color_space = ExifColorSpace.UNCALIBRATED
        params.exif = ExifWriter(entries, color_space).create_exif_app1_payload()

    if xmp is not None:
        packet = xmp if isinstance(xmp, bytes) else serialize_xmp(xmp)
        data = split_xmp_packet(packet, config)
        params.standard_xmp = data.standard_xmp_bytes
        params.extended_xmp_chunks = data.extended_xmp_chunks

    return params


def save(image, stream: BinaryIO, properties: Iterable[ExifPropertyItem] = (),
         xmp: Union[None, bytes, etree._ElementTree] = None,
         codec: Optional[JpegCodec] = None,
         config: Optional[CodecConfig] = None,
         options: Optional[EncodeOptions] = None):
    """Encode ``image`` with its metadata to ``stream``."""
    if config is None:
        config = CodecConfig.default()
    if codec is None:
        codec = PillowJpegCodec()
    if options is None:
        options = EncodeOptions(quality=config.jpeg_quality,
                                chroma_subsampling=config.chroma_subsampling,
                                progressive=config.progressive)

    if is_grayscale(image):
        options = replace(options, chroma_subsampling='4:0:0')

    metadata = create_metadata_params(properties, xmp, config)
    codec.encode(image, stream, metadata, options)


def is_grayscale(image: Image.Image) -> bool:
    """True if every pixel has equal R, G and B."""
    if image.mode in ('1', 'L', 'LA', 'I', 'I;16', 'F'):
        return True
    r, g, b = image.convert('RGB').split()
    return (ImageChops.difference(r, g).getbbox() is None
            and ImageChops.difference(g, b).getbbox() is None)
