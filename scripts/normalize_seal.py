"""
Seal Normalization Command-Line Tool.

Normalizes seal photographs into the canonical frame and writes the results
next to each input (or into --output-dir).

Usage:
    # Normalize one photo
    python scripts/normalize_seal.py photos/seal.jpg

    # Normalize a batch, write pin crops and a JSON report
    python scripts/normalize_seal.py photos/*.jpg --output-dir out --pins \
        --report out/report.json

    # Fail the run if any photo could not be rectified
    python scripts/normalize_seal.py photos/*.jpg --strict
"""

import argparse
import logging
import sys
from pathlib import Path

# Add project root to path
PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from src.seal_alignment import SealNormalizer  # noqa: E402
from src.seal_alignment.pin_crops import extract_pin_crops  # noqa: E402
from src.utils.io import load_image, save_image, save_json  # noqa: E402

logger = logging.getLogger(__name__)


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Normalize seal photographs to the canonical frame",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("images", nargs="+", type=Path, help="Input image files")
    parser.add_argument(
        "--output-dir",
        type=Path,
        default=None,
        help="Directory for outputs (default: next to each input)",
    )
    parser.add_argument(
        "--config", type=Path, default=None, help="Custom config.yaml path"
    )
    parser.add_argument(
        "--pins", action="store_true", help="Also write the three pin crops"
    )
    parser.add_argument(
        "--report", type=Path, default=None, help="Write a JSON status report"
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Exit with status 1 if any image fell back to the square crop",
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Enable debug logging"
    )
    return parser.parse_args(argv)


def normalize_file(
    normalizer: SealNormalizer, image_path: Path, output_dir: Path, pins: bool
) -> dict:
    """Normalize one file and return its report entry."""
    image = load_image(image_path)
    result = normalizer.process(image)

    output_path = output_dir / f"{image_path.stem}_normalized.png"
    save_image(result.image, output_path)

    if pins:
        for index, crop in enumerate(extract_pin_crops(result.image), start=1):
            save_image(crop, output_dir / f"{image_path.stem}_pin{index}.png")

    if result.is_rectified():
        logger.info(f"✓ {image_path.name}: rectified -> {output_path}")
    else:
        logger.warning(
            f"⚠ {image_path.name}: {result.get_error_message()} "
            f"(square crop written to {output_path})"
        )

    return {
        "input": str(image_path),
        "output": str(output_path),
        "status": result.status.value,
        "failure_reason": result.failure_reason.value,
        "triple_score": result.triple_score,
        "candidate_count": result.candidate_count,
        "transform": (
            result.transform.to_matrix().tolist() if result.transform else None
        ),
    }


def main(argv=None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    normalizer = SealNormalizer(config_path=args.config)

    entries = []
    for image_path in args.images:
        output_dir = args.output_dir or image_path.parent
        try:
            entries.append(normalize_file(normalizer, image_path, output_dir, args.pins))
        except (FileNotFoundError, ValueError, IOError) as e:
            logger.error(f"✗ {image_path}: {e}")
            entries.append(
                {"input": str(image_path), "status": "ERROR", "error": str(e)}
            )

    if args.report:
        save_json({"results": entries}, args.report)
        logger.info(f"Report written to {args.report}")

    rectified = sum(1 for e in entries if e["status"] == "RECTIFIED")
    logger.info(f"Rectified {rectified}/{len(entries)} images")

    if any(e["status"] == "ERROR" for e in entries):
        return 2
    if args.strict and rectified < len(entries):
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
