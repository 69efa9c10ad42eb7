"""CLI interface for jpegmeta -- exif, xmp, info, split-xmp subcommands."""

import json
import logging
import sys
from pathlib import Path

import click

import jpegmeta
from jpegmeta import jpeg_file
from jpegmeta.codec import PillowJpegCodec
from jpegmeta.config import CodecConfig
from jpegmeta.errors import MetadataError
from jpegmeta.exif.metadata import MetadataSection, decode_values
from jpegmeta.exif.parser import parse as parse_exif
from jpegmeta.exif.tags import tag_name
from jpegmeta.log import (
    cli_bold,
    cli_dim,
    cli_error,
    cli_header,
    cli_info,
    cli_success,
    cli_warning,
    log_error,
    log_info,
    log_warn,
)
from jpegmeta.xmp.constants import STANDARD_XMP_PREFIX
from jpegmeta.xmp.extended import split_xmp_packet
from jpegmeta.xmp.merge import serialize_xmp

_PREVIEW_LENGTH = 40
_SECTION_ORDER = {section: i for i, section in enumerate(MetadataSection)}


@click.group()
@click.version_option(version=jpegmeta.__version__, prog_name='jpegmeta')
@click.option('--verbose', '-v', is_flag=True, help='Enable debug logging.')
@click.option('--config', 'config_path', type=click.Path(exists=True, dir_okay=False),
              help='JSON file overriding codec settings.')
@click.pass_context
def main(ctx, verbose, config_path):
    """jpegmeta -- EXIF and XMP metadata for JPEG files.

    Inspect the EXIF directories and (extended) XMP packets of JPEG
    images, and split oversized XMP packets into APP1 chunks.
    """
    if verbose:
        logging.basicConfig(level=logging.DEBUG,
                            format='%(levelname)s %(name)s: %(message)s')
    try:
        ctx.obj = CodecConfig.from_json(config_path) if config_path else CodecConfig.default()
    except (ValueError, TypeError) as e:
        raise click.BadParameter(str(e), param_hint='--config')


def _fail(message: str):
    click.echo(cli_error(f'Error: {message}'), err=True)
    sys.exit(1)


def _preview(value) -> str:
    if isinstance(value, bytes):
        text = value[:_PREVIEW_LENGTH].hex(' ')
        if len(value) > _PREVIEW_LENGTH:
            text += f' ... ({len(value)} bytes)'
        return text
    text = str(value)
    if len(text) > _PREVIEW_LENGTH * 2:
        text = text[:_PREVIEW_LENGTH * 2] + '...'
    return text


def _json_value(value):
    if isinstance(value, bytes):
        return value.hex()
    if isinstance(value, (list, tuple)):
        return [_json_value(v) for v in value]
    return value


@main.command()
@click.argument('path', type=click.Path(exists=True, dir_okay=False))
@click.option('--json-out', type=click.Path(), help='Write entries as JSON to file.')
@click.pass_obj
def exif(config, path, json_out):
    """List the EXIF entries of a JPEG file."""
    filepath = Path(path)
    try:
        with open(filepath, 'rb') as f:
            decoded = PillowJpegCodec().decode(f)
        if not decoded.exif:
            click.echo(f'{filepath.name}: no EXIF data')
            return
        entries = parse_exif(decoded.exif, config=config)
    except (MetadataError, OSError, ValueError) as e:
        _fail(f'{filepath.name}: {e}')

    click.echo(cli_header(f'{filepath.name}: {len(entries)} EXIF entries'))
    rows = []
    for entry in sorted(entries, key=lambda e: (_SECTION_ORDER[e.section], e.tag_id)):
        value = decode_values(entry)
        name = tag_name(entry.section, entry.tag_id)
        click.echo(f'  {entry.section.name:<8} {cli_dim(f"0x{entry.tag_id:04X}")} '
                   f'{cli_bold(name):<28} {entry.type.name:<10} {_preview(value)}')
        rows.append({
            'section': entry.section.name,
            'tag': entry.tag_id,
            'name': name,
            'type': entry.type.name,
            'count': entry.count,
            'value': _json_value(value),
        })

    if json_out:
        with open(json_out, 'w') as f:
            json.dump(rows, f, indent=2)
        click.echo(cli_info(f'Entries written to {json_out}'))


@main.command()
@click.argument('path', type=click.Path(exists=True, dir_okay=False))
@click.pass_obj
def xmp(config, path):
    """Print the XMP document of a JPEG file, extended XMP merged in."""
    filepath = Path(path)
    try:
        with open(filepath, 'rb') as f:
            result = jpeg_file.load(f, config=config)
    except (MetadataError, OSError, ValueError) as e:
        _fail(f'{filepath.name}: {e}')

    for warning in result.warnings:
        click.echo(cli_warning(f'WARNING: {warning}'), err=True)
    if result.xmp is None:
        click.echo(f'{filepath.name}: no XMP packet')
        return
    click.echo(serialize_xmp(result.xmp).decode('utf-8'))


@main.command()
@click.argument('path', type=click.Path(exists=True, dir_okay=False))
@click.option('--log', type=click.Path(), help='Also write the summary to a log file.')
@click.pass_obj
def info(config, path, log):
    """Show a summary of the metadata blocks in a JPEG file."""
    filepath = Path(path)
    log_file = open(log, 'a') if log else None

    def log_msg(msg, level=log_info, style=None):
        click.echo(style(msg) if style else msg)
        if log_file:
            log_file.write(level(msg.strip()) + '\n')
            log_file.flush()

    try:
        try:
            with open(filepath, 'rb') as f:
                decoded = PillowJpegCodec().decode(f)
                f.seek(0)
                result = jpeg_file.load(f, config=config)
        except (MetadataError, OSError, ValueError) as e:
            if log_file:
                log_file.write(log_error(f'{filepath.name}: {e}') + '\n')
            _fail(f'{filepath.name}: {e}')

        image = result.image
        log_msg(f'File: {filepath.name}')
        log_msg(f'Size: {filepath.stat().st_size} bytes')
        log_msg(f'Dimensions: {image.width} x {image.height} ({image.mode})')
        log_msg(f'EXIF: {len(decoded.exif) if decoded.exif else 0} bytes, '
                f'{len(result.properties)} properties')
        log_msg(f'Orientation: {result.orientation if result.orientation else "not set"}')
        log_msg(f'ICC profile: {len(decoded.icc_profile) if decoded.icc_profile else 0} bytes')
        log_msg(f'XMP: {len(decoded.standard_xmp) if decoded.standard_xmp else 0} bytes '
                f'standard, {len(decoded.extended_xmp)} extended chunk(s)')

        if result.warnings:
            for warning in result.warnings:
                log_msg(f'  WARNING: {warning}', level=log_warn, style=cli_warning)
        else:
            log_msg('Metadata OK', style=cli_success)
    finally:
        if log_file:
            log_file.close()


@main.command('split-xmp')
@click.argument('packet', type=click.Path(exists=True, dir_okay=False))
@click.argument('outdir', type=click.Path(file_okay=False))
@click.pass_obj
def split_xmp(config, packet, outdir):
    """Split an XMP packet into APP1 payload files.

    Writes standard.bin, plus extended-NNN.bin for each extended chunk
    when the packet is too large for one APP1 segment. Each file holds a
    complete APP1 body, signature included.
    """
    data = Path(packet).read_bytes()
    if data.startswith(STANDARD_XMP_PREFIX):
        data = data[len(STANDARD_XMP_PREFIX):]

    split = split_xmp_packet(data, config)
    out = Path(outdir)
    out.mkdir(parents=True, exist_ok=True)

    (out / 'standard.bin').write_bytes(split.standard_xmp_bytes)
    for i, chunk in enumerate(split.extended_xmp_chunks):
        (out / f'extended-{i:03d}.bin').write_bytes(chunk)

    if split.extended_xmp_chunks:
        click.echo(f'{len(data)} byte packet split into a standard stub and '
                   f'{len(split.extended_xmp_chunks)} extended chunk(s) in {out}')
    else:
        click.echo(f'{len(data)} byte packet fits in one standard APP1 segment; '
                   f'written to {out / "standard.bin"}')


if __name__ == '__main__':
    main()
