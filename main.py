"""Vibelog — CLI entry point."""

import argparse
import logging

from vibelog import analyze, generate_report
from vibelog.config import VibelogConfig, WindowParams

if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Score journal notes and print a trend report.")
    parser.add_argument("notes", nargs="?", default="notes.json")
    parser.add_argument("--days", type=int, default=7)
    parser.add_argument("--tz", default=None, help="IANA timezone (default: system zone)")
    parser.add_argument("-v", "--verbose", action="store_true")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )

    cfg = VibelogConfig(window=WindowParams(days=args.days), timezone=args.tz)
    result = analyze(args.notes, cfg=cfg)
    print(generate_report(result))
