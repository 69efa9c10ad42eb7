"""Exception types for the metadata interchange codecs.

Fatal errors (end of stream, malformed TIFF header) propagate to the caller
and abort the surrounding load. Recoverable errors (inconsistent extended XMP
chunks, malformed XML) are caught inside the XMP helpers, which degrade to the
standard packet alone.
"""


class MetadataError(Exception):
    """Base class for all jpegmeta errors."""

    def __init__(self, message: str = ""):
        self.message = message
        super().__init__(message)


class EndOfStreamError(MetadataError, EOFError):
    """Fewer bytes were available than a read required."""

    def __init__(self, message: str = "Unexpected end of stream"):
        super().__init__(message)


class MalformedHeaderError(MetadataError):
    """Unrecognized TIFF byte-order marker or corrupt TIFF magic."""


class InconsistentChunkError(MetadataError):
    """An extended XMP chunk does not belong to the packet being rebuilt."""


class MalformedXmlError(MetadataError):
    """An XMP packet is not well-formed XML."""


class ReaderClosedError(MetadataError, ValueError):
    """An operation was attempted on a closed EndianBinaryReader."""

    def __init__(self, message: str = "I/O operation on a closed reader"):
        super().__init__(message)
