"""EXIF metadata: endian reader, entry model, IFD parser and writer.

Re-exports the public names so ``from jpegmeta.exif import X`` works for
everything in the sub-modules.
"""

# --- reader.py: buffered endian-aware stream reader ---
from jpegmeta.exif.reader import (  # noqa: F401
    MAX_BUFFER_SIZE,
    EndianBinaryReader,
    Endianness,
)

# --- metadata.py: keys, entries, collections, IFD records ---
from jpegmeta.exif.metadata import (  # noqa: F401
    TAG_TYPE_SIZES,
    ExifColorSpace,
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
    to_host_section,
    try_decode_short,
    type_size,
)

# --- tags.py: tag ids and names ---
from jpegmeta.exif.tags import (  # noqa: F401
    EXIF_IFD_POINTER_TAG,
    GPS_IFD_POINTER_TAG,
    INTEROP_IFD_POINTER_TAG,
    MetadataKeys,
    tag_name,
)

# --- parser.py / writer.py: TIFF IFD codec ---
from jpegmeta.exif.parser import parse, read_directory, read_tiff_header  # noqa: F401
from jpegmeta.exif.writer import EXIF_SIGNATURE, ExifWriter, write_exif  # noqa: F401
