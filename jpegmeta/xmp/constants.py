"""XMP signatures, namespaces and element names."""

STANDARD_XMP_SIGNATURE = 'http://ns.adobe.com/xap/1.0/'
EXTENDED_XMP_SIGNATURE = 'http://ns.adobe.com/xmp/extension/'

# APP1 prefixes, including the NUL terminator.
STANDARD_XMP_PREFIX = STANDARD_XMP_SIGNATURE.encode('ascii') + b'\x00'
EXTENDED_XMP_PREFIX = EXTENDED_XMP_SIGNATURE.encode('ascii') + b'\x00'

# GUID (32 hex chars) + full length (u32 BE) + chunk offset (u32 BE)
GUID_LENGTH = 32
EXTENDED_XMP_HEADER_LENGTH = GUID_LENGTH + 4 + 4

ADOBE_META_NS = 'adobe:ns:meta/'
RDF_NS = 'http://www.w3.org/1999/02/22-rdf-syntax-ns#'
XMP_NOTE_NS = 'http://ns.adobe.com/xmp/note/'

XMPMETA_TAG = f'{{{ADOBE_META_NS}}}xmpmeta'
RDF_TAG = f'{{{RDF_NS}}}RDF'
DESCRIPTION_TAG = f'{{{RDF_NS}}}Description'
ABOUT_ATTR = f'{{{RDF_NS}}}about'
HAS_EXTENDED_XMP_TAG = f'{{{XMP_NOTE_NS}}}HasExtendedXMP'
