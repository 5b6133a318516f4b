"""Command-line table extraction for PDFs (prints CSV or writes it to files)"""
import argparse
import os
import sys
import traceback
from typing import List, Optional

from table_recovery import (
    Config,
    DocumentError,
    PageSelection,
    ScoreThresholdError,
    TableExtractionPipeline,
)
from table_recovery.config import MODES, OCR_MODES

EXIT_OK = 0
EXIT_DOCUMENT = 1
EXIT_USAGE = 2
EXIT_SCORE = 3


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Recover tables from PDF pages as CSV")
    parser.add_argument("pdf", nargs="?", help="PDF file to process.")
    parser.add_argument("-m", "--mode", default="hybrid", choices=MODES + ("ocr-stream",),
                        help="Extraction strategy (default: hybrid).")
    parser.add_argument("-p", "--pages", default="all", help="Pages: all, 1, 2-5 or 1,3-4 (default: all).")
    parser.add_argument("--sep", default=",", help="CSV separator, one character (default: ',').")
    parser.add_argument("-o", "--out", help="Output CSV path; several tables are written as stem-1.csv, stem-2.csv, ...")
    parser.add_argument("--debug", action="store_true", help="Write debug images.")
    parser.add_argument("--debug-dir", default="debug", help="Directory for debug images (default: debug).")
    parser.add_argument("--keep-cells", action="store_true", help="With --debug, also keep per-cell crops and OCR text.")
    parser.add_argument("--dpi", type=float, help="Render resolution for lattice and ocr-stream (default: 300 and 450).")
    parser.add_argument("--ocr-dpi", type=float, help="Render resolution for ocr-stream only; overrides --dpi.")
    parser.add_argument("--ocr", default="auto", choices=OCR_MODES, help="OCR backend (default: auto).")
    parser.add_argument("--ocr-lang", default="eng", help="OCR language code (default: eng).")
    parser.add_argument("--min-score", type=float, default=0.0, help="Minimum hybrid score per page (0-1).")
    parser.add_argument("--require-headers", default="",
                        help="Comma-separated header words a page must show for ocr-stream, e.g. date,balance.")
    parser.add_argument("--serve-api", action="store_true", help="Start the HTTP API server instead of running extraction.")
    parser.add_argument("--api-host", default="0.0.0.0", help="Host for the API server (default: 0.0.0.0).")
    parser.add_argument("--api-port", type=int, default=5000, help="Port for the API server (default: 5000).")
    return parser


def config_from_args(args: argparse.Namespace) -> Config:
    """Build the extraction configuration; raises ValueError on invalid values."""
    dpi = {}
    if args.dpi is not None:
        dpi.update(render_dpi=args.dpi, ocr_dpi=args.dpi)
    if args.ocr_dpi is not None:
        dpi["ocr_dpi"] = args.ocr_dpi
    return Config(
        mode=args.mode,
        pages=PageSelection.parse(args.pages),
        **dpi,
        debug=args.debug,
        debug_dir=args.debug_dir,
        keep_empty_cells=args.keep_cells,
        min_score=args.min_score,
        required_header_tokens=tuple(args.require_headers.split(",")),
        ocr_mode=args.ocr,
        ocr_lang=args.ocr_lang,
        csv_separator=args.sep,
    )


def output_paths(out: str, count: int) -> List[str]:
    """``out`` itself for one table, otherwise ``stem-1.ext``, ``stem-2.ext``, ..."""
    if count == 1:
        return [out]
    stem, ext = os.path.splitext(out)
    return [f"{stem}-{i}{ext}" for i in range(1, count + 1)]


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.serve_api:
        from api import app

        print(f"🌐 Starting API server on {args.api_host}:{args.api_port} ...", file=sys.stderr)
        app.run(host=args.api_host, port=args.api_port)
        return EXIT_OK

    if not args.pdf:
        parser.print_usage(sys.stderr)
        print("❌ A PDF file is required.", file=sys.stderr)
        return EXIT_USAGE

    try:
        config = config_from_args(args)
    except ValueError as e:
        print(f"❌ Invalid option: {e}", file=sys.stderr)
        return EXIT_USAGE

    try:
        tables = TableExtractionPipeline(config).extract(args.pdf)
    except FileNotFoundError as e:
        print(f"❌ {e}", file=sys.stderr)
        return EXIT_DOCUMENT
    except DocumentError as e:
        print(f"❌ Cannot read PDF: {e}", file=sys.stderr)
        return EXIT_DOCUMENT
    except ScoreThresholdError as e:
        print(f"❌ {e}", file=sys.stderr)
        return EXIT_SCORE
    except Exception as e:
        print(f"\nERROR: {e}", file=sys.stderr)
        traceback.print_exc()
        return EXIT_DOCUMENT

    if not tables:
        print("No tables found.", file=sys.stderr)
        return EXIT_OK

    if args.out:
        out_dir = os.path.dirname(args.out)
        if out_dir:
            os.makedirs(out_dir, exist_ok=True)
        for table, path in zip(tables, output_paths(args.out, len(tables))):
            with open(path, "w", encoding="utf-8", newline="") as f:
                f.write(table.to_csv(config.csv_separator) + "\n")
            print(f"✅ Table written to: {path}", file=sys.stderr)
    else:
        for i, table in enumerate(tables, 1):
            print(f"--- Table {i} ---")
            print(table.to_csv(config.csv_separator))

    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
