"""Codec settings with JSON overrides."""

import json
from dataclasses import dataclass, fields, replace

CHROMA_SUBSAMPLING_MODES = ('4:4:4', '4:2:2', '4:2:0', '4:0:0')


@dataclass(frozen=True)
class CodecConfig:
    """Tunable limits for the metadata codecs and encode defaults.

    The XMP limits come from the JPEG APP1 segment size: a segment holds at
    most 65533 payload bytes, which leaves 65504 bytes of packet after the
    standard XMP signature. Packets are kept 30 bytes under that. Extended
    chunks carry at most 65400 bytes after their 75-byte header.
    """

    reader_buffer_size: int = 4096
    max_standard_xmp_length: int = 65504 - 30
    extended_chunk_size: int = 65400
    standard_packet_target_size: int = 1024
    jpeg_quality: int = 95
    progressive: bool = False
    chroma_subsampling: str = '4:2:0'

    def __post_init__(self):
        if self.reader_buffer_size <= 0:
            raise ValueError('reader_buffer_size must be positive')
        if self.extended_chunk_size <= 0:
            raise ValueError('extended_chunk_size must be positive')
        if not 0 <= self.jpeg_quality <= 100:
            raise ValueError('jpeg_quality must be between 0 and 100')
        if self.chroma_subsampling not in CHROMA_SUBSAMPLING_MODES:
            raise ValueError(
                f'chroma_subsampling must be one of {CHROMA_SUBSAMPLING_MODES}')

    @classmethod
    def default(cls) -> 'CodecConfig':
        """Return the built-in defaults."""
        return cls()

    @classmethod
    def from_json(cls, path) -> 'CodecConfig':
        """Load settings from a JSON file and merge with defaults.

        JSON format::

            {
              "jpeg_quality": 90,
              "extended_chunk_size": 65000
            }

        All keys are optional; omitted keys keep their defaults. Unknown keys
        raise ValueError.
        """
        with open(str(path), 'r') as f:
            data = json.load(f)

        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f'Unknown config keys: {", ".join(unknown)}')

        return replace(cls.default(), **data)
