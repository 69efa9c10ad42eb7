"""EXIF tag ids, sub-IFD pointer tags and display names."""

from typing import Dict

from jpegmeta.exif.metadata import MetadataKey, MetadataSection

# Sub-IFD pointer tags
EXIF_IFD_POINTER_TAG = 0x8769
GPS_IFD_POINTER_TAG = 0x8825
INTEROP_IFD_POINTER_TAG = 0xA005

# {parent section: {pointer tag: child section}}
SUB_IFD_POINTERS: Dict[MetadataSection, Dict[int, MetadataSection]] = {
    MetadataSection.IMAGE: {
        EXIF_IFD_POINTER_TAG: MetadataSection.EXIF,
        GPS_IFD_POINTER_TAG: MetadataSection.GPS,
    },
    MetadataSection.EXIF: {
        INTEROP_IFD_POINTER_TAG: MetadataSection.INTEROP,
    },
    MetadataSection.GPS: {},
    MetadataSection.INTEROP: {},
}

IMAGE_TAG_NAMES: Dict[int, str] = {
    254: 'NewSubfileType', 256: 'ImageWidth', 257: 'ImageLength',
    258: 'BitsPerSample', 259: 'Compression', 262: 'PhotometricInterpretation',
    270: 'ImageDescription', 271: 'Make', 272: 'Model',
    273: 'StripOffsets', 274: 'Orientation', 277: 'SamplesPerPixel',
    278: 'RowsPerStrip', 279: 'StripByteCounts',
    282: 'XResolution', 283: 'YResolution', 284: 'PlanarConfiguration',
    296: 'ResolutionUnit', 301: 'TransferFunction',
    305: 'Software', 306: 'DateTime', 315: 'Artist', 316: 'HostComputer',
    318: 'WhitePoint', 319: 'PrimaryChromaticities',
    513: 'JPEGInterchangeFormat', 514: 'JPEGInterchangeFormatLength',
    529: 'YCbCrCoefficients', 530: 'YCbCrSubSampling', 531: 'YCbCrPositioning',
    532: 'ReferenceBlackWhite', 700: 'XMP', 33432: 'Copyright',
    34665: 'ExifIFDPointer', 34675: 'InterColorProfile', 34853: 'GPSInfoIFDPointer',
}

EXIF_TAG_NAMES: Dict[int, str] = {
    33434: 'ExposureTime', 33437: 'FNumber', 34850: 'ExposureProgram',
    34852: 'SpectralSensitivity', 34855: 'ISOSpeedRatings', 34856: 'OECF',
    36864: 'ExifVersion', 36867: 'DateTimeOriginal', 36868: 'DateTimeDigitized',
    37121: 'ComponentsConfiguration', 37122: 'CompressedBitsPerPixel',
    37377: 'ShutterSpeedValue', 37378: 'ApertureValue', 37379: 'BrightnessValue',
    37380: 'ExposureBiasValue', 37381: 'MaxApertureValue', 37382: 'SubjectDistance',
    37383: 'MeteringMode', 37384: 'LightSource', 37385: 'Flash',
    37386: 'FocalLength', 37396: 'SubjectArea', 37500: 'MakerNote',
    37510: 'UserComment', 37520: 'SubSecTime', 37521: 'SubSecTimeOriginal',
    37522: 'SubSecTimeDigitized', 40960: 'FlashpixVersion', 40961: 'ColorSpace',
    40962: 'PixelXDimension', 40963: 'PixelYDimension', 40964: 'RelatedSoundFile',
    40965: 'InteroperabilityIFDPointer', 41486: 'FocalPlaneXResolution',
    41487: 'FocalPlaneYResolution', 41488: 'FocalPlaneResolutionUnit',
    41495: 'SensingMethod', 41728: 'FileSource', 41729: 'SceneType',
    41985: 'CustomRendered', 41986: 'ExposureMode', 41987: 'WhiteBalance',
    41988: 'DigitalZoomRatio', 41989: 'FocalLengthIn35mmFilm',
    41990: 'SceneCaptureType', 41991: 'GainControl', 41992: 'Contrast',
    41993: 'Saturation', 41994: 'Sharpness', 41996: 'SubjectDistanceRange',
    42016: 'ImageUniqueID', 42032: 'CameraOwnerName', 42033: 'BodySerialNumber',
    42034: 'LensSpecification', 42035: 'LensMake', 42036: 'LensModel',
}

GPS_TAG_NAMES: Dict[int, str] = {
    0: 'GPSVersionID', 1: 'GPSLatitudeRef', 2: 'GPSLatitude',
    3: 'GPSLongitudeRef', 4: 'GPSLongitude', 5: 'GPSAltitudeRef',
    6: 'GPSAltitude', 7: 'GPSTimeStamp', 8: 'GPSSatellites',
    9: 'GPSStatus', 10: 'GPSMeasureMode', 11: 'GPSDOP',
    12: 'GPSSpeedRef', 13: 'GPSSpeed', 14: 'GPSTrackRef',
    15: 'GPSTrack', 16: 'GPSImgDirectionRef', 17: 'GPSImgDirection',
    18: 'GPSMapDatum', 19: 'GPSDestLatitudeRef', 20: 'GPSDestLatitude',
    21: 'GPSDestLongitudeRef', 22: 'GPSDestLongitude', 23: 'GPSDestBearingRef',
    24: 'GPSDestBearing', 25: 'GPSDestDistanceRef', 26: 'GPSDestDistance',
    27: 'GPSProcessingMethod', 28: 'GPSAreaInformation', 29: 'GPSDateStamp',
    30: 'GPSDifferential', 31: 'GPSHPositioningError',
}

INTEROP_TAG_NAMES: Dict[int, str] = {
    1: 'InteroperabilityIndex', 2: 'InteroperabilityVersion',
    4096: 'RelatedImageFileFormat', 4097: 'RelatedImageWidth',
    4098: 'RelatedImageLength',
}

_NAMES_BY_SECTION = {
    MetadataSection.IMAGE: IMAGE_TAG_NAMES,
    MetadataSection.EXIF: EXIF_TAG_NAMES,
    MetadataSection.GPS: GPS_TAG_NAMES,
    MetadataSection.INTEROP: INTEROP_TAG_NAMES,
}


def tag_name(section: MetadataSection, tag_id: int) -> str:
    return _NAMES_BY_SECTION[section].get(tag_id, f'Tag_0x{tag_id:04X}')


class MetadataKeys:
    """Well-known metadata keys."""

    class Image:
        ORIENTATION = MetadataKey(MetadataSection.IMAGE, 0x0112)
        INTER_COLOR_PROFILE = MetadataKey(MetadataSection.IMAGE, 0x8773)

    class Exif:
        COLOR_SPACE = MetadataKey(MetadataSection.EXIF, 0xA001)
