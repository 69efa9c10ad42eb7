"""XMP document parsing and standard/extended packet merging."""

import copy
import logging
from typing import Iterable, Optional

from lxml import etree

from jpegmeta.buffers import BufferPool
from jpegmeta.errors import MalformedXmlError
from jpegmeta.xmp.constants import (
    ABOUT_ATTR,
    DESCRIPTION_TAG,
    HAS_EXTENDED_XMP_TAG,
    RDF_TAG,
)
from jpegmeta.xmp.extended import try_recombine_extended_xmp

logger = logging.getLogger(__name__)


def _xml_parser() -> etree.XMLParser:
    return etree.XMLParser(resolve_entities=False, no_network=True,
                           remove_blank_text=False, huge_tree=False)


def parse_xmp_bytes(data: bytes) -> etree._ElementTree:
    """Parse UTF-8 packet XML. Raises MalformedXmlError."""
    try:
        root = etree.fromstring(data.rstrip(b'\x00'), parser=_xml_parser())
    except (etree.XMLSyntaxError, ValueError) as e:
        raise MalformedXmlError(f'Invalid XMP packet: {e}') from e
    return root.getroottree()


def try_parse_xmp_bytes(data: Optional[bytes]) -> Optional[etree._ElementTree]:
    if not data:
        return None
    try:
        return parse_xmp_bytes(data)
    except MalformedXmlError as e:
        logger.debug("ignoring XMP packet: %s", e.message)
        return None


def serialize_xmp(document: etree._ElementTree) -> bytes:
    """Serialize ``document`` (including xpacket instructions) as UTF-8."""
    return etree.tostring(document, encoding='utf-8', xml_declaration=False)


def find_rdf_element(document: etree._ElementTree) -> Optional[etree._Element]:
    root = document.getroot()
    if root.tag == RDF_TAG:
        return root
    return next(root.iter(RDF_TAG), None)


def try_get_extended_xmp_guid(document: Optional[etree._ElementTree]) -> Optional[str]:
    """Return the ``xmpNote:HasExtendedXMP`` GUID of a standard packet.

    The marker may sit in any top-level rdf:Description, as an attribute or
    as a child element.
    """
    if document is None:
        return None
    rdf = find_rdf_element(document)
    if rdf is None:
        return None

    for description in rdf.iterchildren(DESCRIPTION_TAG):
        value = description.get(HAS_EXTENDED_XMP_TAG)
        if value is None:
            element = description.find(HAS_EXTENDED_XMP_TAG)
            if element is not None:
                value = ''.join(element.itertext())
        if value is not None and value.strip():
            return value.strip()
    return None


def merge_xmp_packets(standard: etree._ElementTree,
                      extended: etree._ElementTree) -> etree._ElementTree:
    """Merge the extended packet's descriptions into a copy of ``standard``.

    Descriptions that describe the same resource are folded into the first
    one. Conflicting attributes and child elements keep the standard value.
    The HasExtendedXMP marker is removed from the result. Neither input is
    modified.
    """
    merged = copy.deepcopy(standard)
    merged_rdf = find_rdf_element(merged)
    extended_rdf = find_rdf_element(extended)
    if merged_rdf is None or extended_rdf is None:
        raise MalformedXmlError('XMP packet has no rdf:RDF element')

    for description in extended_rdf.iterchildren(DESCRIPTION_TAG):
        merged_rdf.append(copy.deepcopy(description))

    descriptions = list(merged_rdf.iterchildren(DESCRIPTION_TAG))
    if descriptions:
        first = descriptions[0]
        for other in descriptions[1:]:
            if _can_merge_descriptions(first, other):
                first = _widen_nsmap(first, other)
                _best_faith_merge(first, other)
                merged_rdf.remove(other)

    for description in merged_rdf.iterchildren(DESCRIPTION_TAG):
        _remove_has_extended_xmp(description)

    etree.cleanup_namespaces(merged)
    return merged


def resolve_xmp_packet(standard_xmp: Optional[bytes],
                       extended_xmp: Iterable[bytes] = (),
                       pool: Optional[BufferPool] = None) -> Optional[etree._ElementTree]:
    """Build the XMP document of an image from its APP1 payloads.

    Returns None when there is no usable standard packet. When the standard
    packet references extended XMP that cannot be recombined, parsed or
    merged, the standard packet is returned on its own.
    """
    standard = try_parse_xmp_bytes(standard_xmp)
    if standard is None:
        return None

    guid = try_get_extended_xmp_guid(standard)
    if guid is None:
        return standard

    packet = try_recombine_extended_xmp(extended_xmp, guid, pool)
    if packet is None:
        return standard

    extended = try_parse_xmp_bytes(packet)
    if extended is None:
        logger.warning("extended XMP %s is not well-formed; using the standard packet",
                       guid)
        return standard

    try:
        return merge_xmp_packets(standard, extended)
    except MalformedXmlError as e:
        logger.warning("cannot merge extended XMP %s: %s", guid, e.message)
        return standard


def _about(description: etree._Element) -> Optional[str]:
    # Older writers emit an unqualified about attribute.
    value = description.get(ABOUT_ATTR)
    if value is None:
        value = description.get('about')
    return value


def _can_merge_descriptions(first: etree._Element, other: etree._Element) -> bool:
    about1 = _about(first)
    about2 = _about(other)
    if about1 is None or about2 is None:
        return True
    return about1 == about2


def _widen_nsmap(target: etree._Element, source: etree._Element) -> etree._Element:
    """Return ``target``, re-created if needed to declare ``source``'s prefixes.

    lxml cannot add namespace declarations to an existing element, so the
    element is rebuilt with the union of both maps and put in its place.
    """
    missing = {p: uri for p, uri in source.nsmap.items()
               if p not in target.nsmap}
    if not missing:
        return target

    nsmap = dict(target.nsmap)
    nsmap.update(missing)
    replacement = etree.Element(target.tag, nsmap=nsmap)
    for name, value in target.attrib.items():
        replacement.set(name, value)
    replacement.text = target.text
    replacement.tail = target.tail
    for child in list(target):
        replacement.append(child)
    target.getparent().replace(target, replacement)
    return replacement


def _best_faith_merge(target: etree._Element, source: etree._Element):
    for name, value in source.attrib.items():
        _try_add_attribute(target, name, value)
    for child in list(source):
        if not isinstance(child.tag, str):
            continue  # comments and processing instructions
        _try_add_element(target, child)


def _try_add_attribute(target: etree._Element, name: str, value: str) -> bool:
    existing = target.get(name)
    if existing is None:
        target.set(name, value)
        return True
    if existing == value:
        return True
    logger.debug("XMP merge: keeping %s=%r, dropping %r", name, existing, value)
    return False


def _try_add_element(target: etree._Element, child: etree._Element) -> bool:
    existing = target.find(child.tag)
    if existing is None:
        target.append(child)
        return True
    if ''.join(existing.itertext()).lower() == ''.join(child.itertext()).lower():
        return True
    logger.debug("XMP merge: keeping existing <%s>", child.tag)
    return False


def _remove_has_extended_xmp(description: etree._Element):
    if HAS_EXTENDED_XMP_TAG in description.attrib:
        del description.attrib[HAS_EXTENDED_XMP_TAG]
    for element in description.findall(HAS_EXTENDED_XMP_TAG):
        description.remove(element)
