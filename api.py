"""Lightweight HTTP API for table extraction.

Exposes:
- GET /api/tables/extract   → health check
- POST /api/tables/extract  → accept a single PDF upload and return its tables as CSV
"""

import os
import tempfile
import time
from typing import Any, Dict

from flask import Flask, jsonify, request
from werkzeug.utils import secure_filename

from table_recovery import (
    Config,
    DocumentError,
    PageSelection,
    ScoreThresholdError,
    TableExtractionPipeline,
)

app = Flask(__name__)


@app.after_request
def add_cors_headers(response):
    """Simple CORS headers for dev usage."""
    response.headers["Access-Control-Allow-Origin"] = "*"
    response.headers["Access-Control-Allow-Headers"] = "Content-Type, Authorization"
    response.headers["Access-Control-Allow-Methods"] = "GET, POST, OPTIONS"
    return response


def parse_float(value: Any, default: float) -> float:
    """Parse a float form field; a malformed value is a client error."""
    if value is None or (isinstance(value, str) and not value.strip()):
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ValueError(f"not a number: {value!r}") from None


def config_from_form(opts: Dict[str, Any]) -> Config:
    """Build the extraction configuration from form fields; raises ValueError."""
    dpi = {}
    if (opts.get("dpi") or "").strip():
        dpi["render_dpi"] = dpi["ocr_dpi"] = parse_float(opts.get("dpi"), 300.0)
    return Config(
        mode=(opts.get("mode") or "hybrid").strip().lower(),
        pages=PageSelection.parse(opts.get("pages") or "all"),
        **dpi,
        min_score=parse_float(opts.get("min_score"), 0.0),
        csv_separator=opts.get("sep") or ",",
    )


def create_pipeline(config: Config) -> TableExtractionPipeline:
    return TableExtractionPipeline(config)


@app.route("/api/tables/extract", methods=["GET"])
def healthcheck():
    return jsonify({"status": "ok"}), 200


@app.route("/api/tables/extract", methods=["POST"])
def extract_tables():
    files = request.files.getlist("file")
    if not files:
        return jsonify({"error": "file is required (multipart/form-data with 'file' field)"}), 400
    if len(files) != 1:
        return jsonify({"error": "only one file allowed"}), 400

    upload = files[0]
    if upload.filename is None or upload.filename.strip() == "":
        return jsonify({"error": "file name is empty"}), 400

    opts: Dict[str, Any] = request.form.to_dict(flat=True)
    try:
        config = config_from_form(opts)
    except ValueError as e:
        return jsonify({"error": f"invalid parameter: {e}"}), 400

    filename = secure_filename(upload.filename) or "upload.pdf"
    temp_dir = tempfile.mkdtemp(prefix="tables_api_")
    temp_path = os.path.join(temp_dir, filename)

    try:
        upload.save(temp_path)
        t0 = time.perf_counter()
        tables = create_pipeline(config).extract(temp_path)
        elapsed = time.perf_counter() - t0

        return jsonify({
            "status": "ok",
            "filename": upload.filename,
            "seconds": round(elapsed, 3),
            "params": {
                "mode": config.mode,
                "pages": str(config.pages),
                "dpi": config.render_dpi,
                "ocr_dpi": config.ocr_dpi,
                "min_score": config.min_score,
                "sep": config.csv_separator,
            },
            "tables": [t.to_csv(config.csv_separator) for t in tables],
        }), 200
    except DocumentError as e:
        return jsonify({"error": f"cannot read PDF: {e}"}), 400
    except ScoreThresholdError as e:
        return jsonify({
            "error": str(e),
            "page": e.page,
            "score": round(e.score, 4),
            "min_score": e.min_score,
        }), 422
    except Exception as e:
        return jsonify({"error": str(e)}), 500
    finally:
        try:
            if os.path.exists(temp_path):
                os.remove(temp_path)
            if os.path.isdir(temp_dir):
                os.rmdir(temp_dir)
        except OSError:
            pass


if __name__ == "__main__":
    host = os.environ.get("API_HOST", "0.0.0.0")
    port = int(os.environ.get("API_PORT", "5000"))
    app.run(host=host, port=port)
