# =============================================================================
# fileforge/cli/convert.py: convert a local file from the command line
# =============================================================================
#
# Typical usage:
#   python -m fileforge.cli convert report.docx --to pdf
#   python -m fileforge.cli convert photo.png --to jpg --output out/photo.jpg
#   python -m fileforge.cli convert notes.txt --to txt --server http://localhost:8000
#   python -m fileforge.cli formats image/png
#
# Without --server the conversion runs in-process with the same settings
# (.env / environment) as the HTTP server, including the CloudConvert key.
# The declared MIME type is guessed from the file extension unless
# --mime-type is given.  --user appends the result as a processed
# dashboard entry to the SQLite file store (--store or FILE_STORE_PATH)
# and prints it as JSON.
#
# Progress and errors go to stderr; exit code 0 on success, 1 on error.
# =============================================================================

"""Command-line conversion entry point."""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path

from fileforge.models.conversion import ConversionResult
from fileforge.services.mime_classifier import allowed_targets
from fileforge.utils.errors import ClientInputError
from fileforge.utils.file_utils import format_bytes, get_file_extension, mime_type_from_extension


async def _convert_in_process(
    file_bytes: bytes,
    file_name: str,
    mime_type: str,
    target_format: str,
) -> ConversionResult:
    import httpx

    from fileforge.config import settings
    from fileforge.main import build_conversion_service

    async with httpx.AsyncClient(timeout=httpx.Timeout(settings.http_timeout_seconds)) as http_client:
        service, _ = build_conversion_service(settings, http_client)
        request = service.build_request(file_bytes, file_name, mime_type, target_format)
        return await service.convert(request)


async def _convert_remote(
    server: str,
    file_bytes: bytes,
    file_name: str,
    mime_type: str,
    target_format: str,
) -> ConversionResult:
    from fileforge.client.conversion_client import ConversionClient

    async with ConversionClient(server) as client:
        return await client.convert(file_bytes, file_name, mime_type, target_format)


async def _record(store_path: str, user_id: str, result: ConversionResult, target_format: str) -> str:
    from fileforge.client.conversion_client import to_file_object
    from fileforge.providers.file_store.sqlite_file_store import SQLiteFileStore

    store = SQLiteFileStore(store_path)
    store.initialize()
    file_object = to_file_object(result, target_format)
    await store.add_file(user_id, file_object)
    return file_object.model_dump_json(by_alias=True)


async def _run(args: argparse.Namespace) -> int:
    from fileforge.client.conversion_client import ConversionRequestError

    source = Path(args.path).resolve()
    if not source.is_file():
        print(f"Error: File not found: {source}", file=sys.stderr)
        return 1

    file_bytes = source.read_bytes()
    mime_type = args.mime_type or mime_type_from_extension(get_file_extension(source.name))
    target_format = args.to.lower()

    print(
        f"Converting: {source.name} ({mime_type}, {format_bytes(len(file_bytes))}) -> {target_format}",
        file=sys.stderr,
    )
    try:
        if args.server:
            result = await _convert_remote(args.server, file_bytes, source.name, mime_type, target_format)
        else:
            result = await _convert_in_process(file_bytes, source.name, mime_type, target_format)
    except (ClientInputError, ConversionRequestError) as exc:
        print(f"Error: {exc.message}", file=sys.stderr)
        return 1

    destination = Path(args.output).resolve() if args.output else source.parent / result.suggested_file_name
    if destination == source:
        print(f"Error: Refusing to overwrite the input file: {source}", file=sys.stderr)
        return 1
    destination.parent.mkdir(parents=True, exist_ok=True)
    destination.write_bytes(result.data)

    strategy = result.strategy.value if result.strategy else "unknown"
    print(f"{destination} ({format_bytes(len(result.data))}, strategy={strategy})")

    if args.user:
        store_path = args.store or _default_store_path()
        print(await _record(store_path, args.user, result, target_format))
    return 0


def _default_store_path() -> str:
    from fileforge.config import settings

    return settings.file_store_path


def _list_formats(mime_type: str) -> int:
    targets = [target.value for target in allowed_targets(mime_type)]
    print(json.dumps({"mimeType": mime_type, "targets": targets}))
    return 0 if targets else 1


# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="python -m fileforge.cli",
        description="Convert files between formats with the fileforge service.",
    )
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    convert_parser = subparsers.add_parser("convert", help="Convert a local file")
    convert_parser.add_argument("path", type=str, help="File to convert.")
    convert_parser.add_argument(
        "--to",
        required=True,
        help="Target format (jpg, png, webp, gif, bmp, pdf, docx, txt, csv).",
    )
    convert_parser.add_argument(
        "--server",
        default=None,
        help="Base URL of a running fileforge server; converts in-process when omitted.",
    )
    convert_parser.add_argument(
        "--output", "-o",
        default=None,
        help="Output path (default: converted name next to the input).",
    )
    convert_parser.add_argument(
        "--mime-type",
        default=None,
        help="Declared MIME type (default: guessed from the file extension).",
    )
    convert_parser.add_argument(
        "--user",
        default=None,
        help="Record the result as a processed file for this user id and print it.",
    )
    convert_parser.add_argument(
        "--store",
        default=None,
        help="SQLite file the --user record is saved to (default: FILE_STORE_PATH setting).",
    )

    formats_parser = subparsers.add_parser("formats", help="List target formats for a MIME type")
    formats_parser.add_argument("mime_type", help="Source MIME type, e.g. image/png.")
    return parser


def main(argv: list[str] | None = None) -> None:
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command == "convert":
        exit_code = asyncio.run(_run(args))
    elif args.command == "formats":
        exit_code = _list_formats(args.mime_type)
    else:
        parser.print_help()
        exit_code = 1
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
