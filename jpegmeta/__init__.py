"""jpegmeta -- EXIF and extended XMP metadata interchange for JPEG images."""

__version__ = "1.0.0"

from jpegmeta.buffers import BufferPool, PooledBuffer, SimpleBufferPool
from jpegmeta.config import CodecConfig
from jpegmeta.errors import (
    EndOfStreamError,
    InconsistentChunkError,
    MalformedHeaderError,
    MalformedXmlError,
    MetadataError,
    ReaderClosedError,
)
from jpegmeta.models import (
    DecodedJpeg,
    EncodeOptions,
    ExifPropertyItem,
    ExifSection,
    LoadResult,
    MetadataParams,
)
from jpegmeta.codec import JpegCodec, PillowJpegCodec
from jpegmeta.jpeg_file import create_metadata_params, is_grayscale, load, save

__all__ = [
    "__version__",
    "BufferPool",
    "PooledBuffer",
    "SimpleBufferPool",
    "CodecConfig",
    "MetadataError",
    "EndOfStreamError",
    "MalformedHeaderError",
    "InconsistentChunkError",
    "MalformedXmlError",
    "ReaderClosedError",
    "DecodedJpeg",
    "EncodeOptions",
    "ExifPropertyItem",
    "ExifSection",
    "LoadResult",
    "MetadataParams",
    "JpegCodec",
    "PillowJpegCodec",
    "load",
    "save",
    "create_metadata_params",
    "is_grayscale",
]
