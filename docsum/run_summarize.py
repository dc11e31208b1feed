"""
run_summarize.py

CLI: extract text from a document, summarize it, and optionally
revise the summary with custom instructions.

Usage:
    python -m docsum.run_summarize <file_path>
    python -m docsum.run_summarize <file_path> --extract-only
    python -m docsum.run_summarize <image_path> --languages eng fra
    python -m docsum.run_summarize <file_path> --improve "Make it shorter"
    python -m docsum.run_summarize <file_path> --json
"""

import argparse
import asyncio
import json
import logging
import sys

from .extraction_pipeline import extract_document
from .schemas import OcrProgressEvent
from .summarizer import SummarizationError, generate_summary, improve_summary
from .utils import ExtractionError, UploadFileError, UploadSecurityError, load_upload


def print_progress(event: OcrProgressEvent) -> None:
    print(f"  [{event.stage}] {event.fraction:.0%}", file=sys.stderr)


async def run(args: argparse.Namespace) -> dict:
    upload = load_upload(args.file_path, media_type=args.media_type)

    kwargs = {}
    if args.timeout is not None:
        kwargs["timeout"] = args.timeout
    result = await extract_document(
        upload,
        progress_sink=print_progress,
        languages=args.languages,
        **kwargs,
    )

    output = {"file": result.file_name, "kind": result.kind.value, "text": result.text}
    if args.extract_only:
        return output

    summary = await generate_summary(result.text)
    if args.improve is not None:
        summary = await improve_summary(summary, args.improve)
    output["summary"] = summary
    return output


def main():
    parser = argparse.ArgumentParser(
        description="Summarize a PDF, DOCX or image document"
    )
    parser.add_argument(
        "file_path",
        help="Path to the PDF, DOCX or image file to process",
    )
    parser.add_argument(
        "--media-type",
        default=None,
        help="Declared media type (guessed from the extension if omitted)",
    )
    parser.add_argument(
        "--languages",
        nargs="+",
        default=None,
        help="OCR language codes for images, e.g. eng fra deu",
    )
    parser.add_argument(
        "--extract-only",
        action="store_true",
        help="Print the extracted text without summarizing",
    )
    parser.add_argument(
        "--improve",
        default=None,
        metavar="INSTRUCTIONS",
        help="Revise the summary; pass an empty string for a general rewrite",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Abandon extraction after this many seconds",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Output the result as JSON",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s  %(levelname)-8s  %(name)s  %(message)s",
    )

    try:
        output = asyncio.run(run(args))
    except (UploadFileError, UploadSecurityError, ExtractionError, SummarizationError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    if args.json:
        print(json.dumps(output, ensure_ascii=False, indent=2))
    elif args.extract_only:
        print(output["text"])
    else:
        print(f"File: {output['file']} ({output['kind']})")
        print("---")
        print(output["summary"])


if __name__ == "__main__":
    main()
