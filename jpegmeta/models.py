"""Data-transfer models shared between the codecs and the image host."""

import enum
from dataclasses import dataclass, field
from typing import Any, List, Optional


class ExifSection(enum.Enum):
    """Host-side EXIF section names."""
    IMAGE = 'Image'
    PHOTO = 'Photo'
    GPS_INFO = 'GpsInfo'
    INTEROP = 'Interop'


@dataclass(frozen=True)
class ExifPropertyItem:
    """A host EXIF property: section, tag, TIFF type id, little-endian payload."""
    section: ExifSection
    tag_id: int
    value_type: int
    data: bytes


@dataclass
class MetadataParams:
    """Metadata payloads handed to the codec when encoding.

    ``exif``, ``standard_xmp`` and each of ``extended_xmp_chunks`` are
    complete APP1 bodies that already start with their signatures.
    """
    exif: Optional[bytes] = None
    icc_profile: Optional[bytes] = None
    standard_xmp: Optional[bytes] = None
    extended_xmp_chunks: List[bytes] = field(default_factory=list)


@dataclass
class DecodedJpeg:
    """What the codec returns from decode().

    ``standard_xmp`` is the packet XML without its signature; each of
    ``extended_xmp`` starts at the chunk GUID (signature stripped).
    """
    image: Any
    exif: Optional[bytes] = None
    icc_profile: Optional[bytes] = None
    standard_xmp: Optional[bytes] = None
    extended_xmp: List[bytes] = field(default_factory=list)


@dataclass
class EncodeOptions:
    quality: int = 95
    chroma_subsampling: str = '4:2:0'
    progressive: bool = False


@dataclass
class LoadResult:
    """A decoded image plus the metadata attached to it."""
    image: Any
    properties: List[ExifPropertyItem] = field(default_factory=list)
    orientation: Optional[int] = None
    xmp: Optional[Any] = None  # lxml ElementTree
    warnings: List[str] = field(default_factory=list)
