"""Command line entry point: ``qrdelta bump`` and ``qrdelta compare``."""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from . import config
from .batch import analyze_paths, summarize
from .compare import build_comparison
from .params import bump_create_time_hour
from .qr import decode_qr_from_bytes, encode_qr_png
from .report import PLACEHOLDER, format_delta
from .utils import bumped_filename, load_image_bytes

logger = logging.getLogger(__name__)


def cmd_bump(parsed: argparse.Namespace) -> int:
    data = load_image_bytes(parsed.image)
    if data is None:
        print(f"Fichier illisible: {parsed.image}", file=sys.stderr)
        return 1
    text = decode_qr_from_bytes(data)
    if not text:
        print("Impossible de décoder un QR dans cette image", file=sys.stderr)
        return 1

    result = bump_create_time_hour(text)
    if not result.changed:
        if result.match.status == "missing":
            print("Aucun paramètre createTime dans ce QR", file=sys.stderr)
        else:
            print("createTime présent mais dans un format non reconnu", file=sys.stderr)
        return 1

    try:
        png = encode_qr_png(result.text, width=parsed.width, margin=parsed.margin)
    except ValueError as exc:
        print(f"Génération impossible: {exc}", file=sys.stderr)
        return 1

    output = parsed.output or Path(parsed.image).with_name(bumped_filename(parsed.image))
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_bytes(png)
    logger.info("Bumped createTime of %s -> %s", parsed.image, result.new_time_display)
    print(f"Nouvelle échéance : {result.new_time_display}")
    print(f"QR code saved to {output}")
    return 0


def cmd_compare(parsed: argparse.Namespace) -> int:
    records = analyze_paths(parsed.images)
    print(summarize(records).message)
    for rec in records:
        if not rec.ok:
            print(f"  ✗ {rec.source}: {rec.error}")

    comparison = build_comparison(records)
    if comparison.insufficient:
        print("Il faut au moins 2 QR décodés pour comparer.")
        return 1

    for row in comparison.rows:
        mark = " " if row.uniform else "*"
        values = " | ".join(v or PLACEHOLDER for v in row.values)
        print(f"{mark} {row.key}: {values}")

    if comparison.time_insufficient:
        print("Pas assez de dates createTime valides pour l'analyse temporelle.")
    for d in comparison.deltas:
        print(f"{d.earlier.source} -> {d.later.source}: {format_delta(d)} "
              f"({d.earlier.parsed_time.formatted} -> {d.later.parsed_time.formatted})")
    return 0


def build_argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="qrdelta", description="Read, bump and compare QR payload parameters")
    sub = parser.add_subparsers(dest="command", required=True)

    bump = sub.add_parser("bump", help="Add one hour to createTime and write a new QR")
    bump.add_argument("image", help="QR image (PNG/JPG)")
    bump.add_argument("-o", "--output", type=Path, default=None, help="Where to write the new PNG")
    bump.add_argument("--width", type=int, default=config.QR_WIDTH, help="QR width in pixels")
    bump.add_argument("--margin", type=int, default=config.QR_MARGIN, help="Quiet zone in modules")
    bump.set_defaults(func=cmd_bump)

    compare = sub.add_parser("compare", help="Compare the parameters of several QR images")
    compare.add_argument("images", nargs="+", help="QR images (PNG/JPG)")
    compare.set_defaults(func=cmd_compare)
    return parser


def main(args: list[str] | None = None) -> int:
    parsed = build_argument_parser().parse_args(args=args)
    config.setup_logging()
    return parsed.func(parsed)


if __name__ == "__main__":
    sys.exit(main())
