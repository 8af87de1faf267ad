"""Render a Typst template through the PDF gateway from the command line."""
from __future__ import annotations
import argparse
import logging
import sys
from pathlib import Path

from typst_pdf_client.common.context import BACKGROUND, with_correlation_id
from typst_pdf_client.common.errors import TypstPDFError
from typst_pdf_client.common.logging_setup import setup_logging
from typst_pdf_client.common.schema import MediaFile
from typst_pdf_client.common.settings import LOG_LEVEL, load_settings
from typst_pdf_client.gateway.client import client_from_settings

LOGGER = logging.getLogger("typst_pdf.cli")

def parse_media(values: list[str]) -> list[MediaFile]:
    """
    Load ``NAME=PATH`` media arguments.

    Args:
        values: Values of repeated --media flags. A bare PATH uses the file name.
    """
    media = []
    for value in values:
        name, sep, path = value.partition("=")
        if not sep:
            name, path = Path(value).name, value
        media.append(MediaFile(name=name, data=Path(path).read_bytes()))
    return media

def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="Generate a PDF from a Typst template via the gateway")
    ap.add_argument("--template", required=True, help="Typst template file")
    ap.add_argument("--output", required=True, help="Where to write the PDF")
    ap.add_argument("--content", default="", help="Content string passed to the template")
    ap.add_argument("--option", action="append", default=[], dest="options",
                    help="Renderer option, repeatable (e.g. --option=--ppi --option=300)")
    ap.add_argument("--media", action="append", default=[], help="Media file as NAME=PATH, repeatable")
    ap.add_argument("--correlation-id", default="", help="Correlation id to send")
    ap.add_argument("--cfg", default=None, help="YAML config with auth_key/endpoint/timeout")
    ap.add_argument("--timeout", type=float, default=None, help="Request timeout in seconds")
    ap.add_argument("--insecure", action="store_true", help="Skip TLS certificate verification")
    ap.add_argument("--log-level", default=LOG_LEVEL)
    return ap

def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level)

    settings = load_settings(args.cfg)
    if args.timeout is not None:
        settings.timeout = args.timeout
    if args.insecure:
        settings.insecure_skip_verify = True

    try:
        media = parse_media(args.media)
    except OSError as e:
        LOGGER.error("Cannot read media file: %s", e)
        return 2

    ctx = with_correlation_id(BACKGROUND, args.correlation_id)
    try:
        with client_from_settings(settings) as client:
            info = client.save_pdf(ctx, args.content, args.template, args.output, args.options, media)
    except TypstPDFError as e:
        LOGGER.error("%s", e)
        if e.response_info is not None and e.response_info.stderr:
            LOGGER.error("stderr:\n%s", e.response_info.stderr)
        return 1

    LOGGER.info("Wrote %s (correlation_id=%s)", args.output, info.correlation_id)
    if info.stdout:
        LOGGER.info("stdout:\n%s", info.stdout)
    if info.stderr:
        LOGGER.warning("stderr:\n%s", info.stderr)
    return 0

if __name__ == "__main__":
    sys.exit(main())
