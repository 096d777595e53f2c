#!/usr/bin/env python3
"""
prezi2pdf

- Opens a presentation viewer URL (or a bare presentation id) in Chromium
- Dismisses the intro overlay and waits for the loading spinner to clear
- Screenshots every slide, clicking "next" until there is none
- Writes all slides, in order, to a single PDF
"""

import argparse
import logging
import re
import sys
from pathlib import Path
from typing import List, Optional

from prezi2pdf.config import apply_overrides, load_config, setup_logging
from prezi2pdf.errors import EXIT_OK, Prezi2PdfError
from prezi2pdf.pipeline import run_pipeline

logger = logging.getLogger("prezi2pdf")

# ---------- utility formatting ----------

def _fmt_elapsed(seconds: float) -> str:
    seconds = int(round(seconds))
    h, r = divmod(seconds, 3600)
    m, s = divmod(r, 60)
    if h > 0:
        return f"{h:d}h {m:02d}m {s:02d}s"
    return f"{m:d}m {s:02d}s"

# ---------- helpers ----------

PRESENTATION_ID = re.compile(r"^[A-Za-z0-9_-]+$")

def ensure_scheme(url: str) -> str:
    if not re.match(r"^https?://", url, flags=re.I):
        return "https://" + url
    return url

def resolve_source(source: str, url_template: str) -> str:
    """Turn a bare presentation id into a viewer URL; pass URLs through."""
    source = source.strip()
    if PRESENTATION_ID.match(source):
        return url_template.format(id=source)
    return ensure_scheme(source)

# ---------- CLI ----------

def parse_args(argv: Optional[List[str]] = None):
    ap = argparse.ArgumentParser(description="Capture every slide of a presentation viewer into a PDF.")
    ap.add_argument("source", help="Viewer URL, or a bare presentation id")
    ap.add_argument("output", help="Path of the PDF to write (overwritten if present)")
    ap.add_argument("--config", default=None, help="YAML config file (default: ./prezi2pdf.yaml if present)")
    ap.add_argument("--headful", action="store_true", help="Show the browser window while capturing.")
    ap.add_argument("--browser", default=None, help="Path to a Chrome/Chromium binary to use instead of Playwright's.")
    ap.add_argument("--timeout-ms", type=int, default=None, help="Element wait timeout in ms.")
    ap.add_argument("--max-wait", type=float, default=None, help="Maximum seconds to wait for the loading spinner (0 = forever).")
    ap.add_argument("--log-level", default=None, help="DEBUG, INFO, WARNING or ERROR.")
    return ap.parse_args(argv)

def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    overrides = {}
    if args.headful:
        overrides.setdefault("browser", {})["headless"] = False
    if args.browser:
        overrides.setdefault("browser", {})["executable_path"] = args.browser
    if args.timeout_ms is not None:
        overrides.setdefault("timing", {})["element_timeout_ms"] = args.timeout_ms
    if args.max_wait is not None:
        overrides.setdefault("timing", {})["readiness_timeout_seconds"] = args.max_wait
    if args.log_level:
        overrides.setdefault("logging", {})["level"] = args.log_level

    try:
        settings = apply_overrides(load_config(args.config), overrides)
        setup_logging(settings)

        url = resolve_source(args.source, settings.viewer.url_template)
        result = run_pipeline(url, Path(args.output), settings)
    except Prezi2PdfError as e:
        print(f"error: {e}", file=sys.stderr)
        return e.exit_code

    print(f"Title : {result.title}")
    print(f"Pages : {result.pages}")
    print(f"PDF   : {result.output}")
    print(f"Done in {_fmt_elapsed(result.elapsed_seconds)}")
    return EXIT_OK

if __name__ == "__main__":
    sys.exit(main())
