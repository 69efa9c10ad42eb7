"""XMP packets: extended-XMP split/recombine and document merge."""

from jpegmeta.xmp.constants import (  # noqa: F401
    EXTENDED_XMP_PREFIX,
    EXTENDED_XMP_SIGNATURE,
    STANDARD_XMP_PREFIX,
    STANDARD_XMP_SIGNATURE,
)
from jpegmeta.xmp.extended import (  # noqa: F401
    ExtendedXmpChunk,
    ExtendedXmpData,
    add_signature_to_standard_xmp_packet,
    compute_guid,
    create_standard_packet_for_extended_xmp,
    recombine_extended_xmp,
    split_into_extended_xmp,
    split_xmp_packet,
    strip_signature,
    try_parse_extended_xmp_chunk,
    try_recombine_extended_xmp,
)
from jpegmeta.xmp.merge import (  # noqa: F401
    merge_xmp_packets,
    parse_xmp_bytes,
    resolve_xmp_packet,
    serialize_xmp,
    try_get_extended_xmp_guid,
    try_parse_xmp_bytes,
)
