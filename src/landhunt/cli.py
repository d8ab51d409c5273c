"""Landhunt CLI — run the enrichment pipelines without the API.

    landhunt score <parcel_id>
    landhunt summarize (--url URL | --text-file PATH) [--parcel-id ID]
    landhunt passport <parcel_id>
"""

import argparse
import asyncio
import json
import logging
import sys
from dataclasses import asdict
from pathlib import Path

from landhunt.config import settings
from landhunt.core.errors import LandhuntError
from landhunt.services import build_services


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="landhunt", description="Landhunt parcel enrichment")
    sub = parser.add_subparsers(dest="command", required=True)

    score = sub.add_parser("score", help="Score a parcel's development suitability")
    score.add_argument("parcel_id")

    summarize = sub.add_parser("summarize", help="Summarise a planning decision")
    source = summarize.add_mutually_exclusive_group(required=True)
    source.add_argument("--url")
    source.add_argument("--text-file", type=Path)
    summarize.add_argument("--parcel-id")

    passport = sub.add_parser("passport", help="Generate a Digital Site Passport PDF")
    passport.add_argument("parcel_id")
    return parser


async def _run(args: argparse.Namespace) -> dict:
    from landhunt.pipeline.enrichment import score_parcel, summarize_planning
    from landhunt.pipeline.passport import generate_passport

    services = build_services(settings)
    try:
        if args.command == "score":
            result = await score_parcel(services, args.parcel_id)
            return {"parcelId": result.parcel_id, "scores": asdict(result.scores)}
        if args.command == "summarize":
            raw_text = args.text_file.read_text(encoding="utf-8") if args.text_file else None
            summary = await summarize_planning(
                services, url=args.url, raw_text=raw_text, parcel_id=args.parcel_id,
            )
            return asdict(summary)
        result = await generate_passport(services, args.parcel_id)
        return {"parcelId": result.parcel_id, "url": result.url}
    finally:
        await services.aclose()


def main(argv: list[str] | None = None) -> None:
    """Entry point for the landhunt console script."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    args = _build_parser().parse_args(argv)

    try:
        output = asyncio.run(_run(args))
    except LandhuntError as e:
        print(json.dumps(e.to_dict(), indent=2), file=sys.stderr)
        sys.exit(1)

    print(json.dumps(output, indent=2, default=str))


if __name__ == "__main__":
    main()
