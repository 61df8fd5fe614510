"""CLI entry point for the face attendance core.

Usage:
    face-attendance quality IMAGE
    face-attendance embed IMAGE [--output PATH]
    face-attendance register --id ID --name NAME IMAGE [IMAGE ...] [--db PATH]
    face-attendance recognize IMAGE [--db PATH] [--threshold T] [--no-attendance]
    face-attendance list [--db PATH]
"""

import argparse
import json
import logging
import sys
from pathlib import Path

import numpy as np

from .constants import get_config, get_storage_config
from .errors import FaceAttendanceError
from .registration import CaptureStatus
from .service import FaceRecognitionService
from .storage import SQLiteFaceStore

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def _open_store(args) -> SQLiteFaceStore:
    return SQLiteFaceStore(args.db or get_storage_config().database_path)


def _create_service(args) -> FaceRecognitionService:
    from .embeddings import TFLiteEmbeddingBackend

    return FaceRecognitionService(
        embedding_backend=TFLiteEmbeddingBackend(model_path=args.model),
        seed=args.seed,
    )


def cmd_quality(args):
    """Run the quality gate on an image."""
    from .quality import check_quality

    verdict = check_quality(args.image)
    if verdict:
        logger.info(f"✓ Quality ok: {verdict.width}x{verdict.height}, brightness={verdict.brightness:.3f}")
        return 0

    logger.info(f"✗ Rejected ({verdict.issue.value}): {verdict.message}")
    return 1


def cmd_embed(args):
    """Compute the stabilized embedding of an image."""
    with _create_service(args) as service:
        result = service.detect_and_embed(args.image)

    if not result.ok:
        logger.error(f"Embedding failed: {result.status.value} {result.error or ''}".rstrip())
        return 1

    if args.output:
        np.save(args.output, result.embedding)
        logger.info(f"Saved: {args.output}")
    else:
        print(json.dumps([round(float(v), 6) for v in result.embedding]))
    return 0


def cmd_register(args):
    """Register an identity from one image per pose step."""
    store = _open_store(args)
    try:
        with _create_service(args) as service:
            session = service.start_registration(args.id, args.name)

            for image_path in args.images:
                if session.is_complete:
                    logger.warning(f"Ignoring extra image: {image_path}")
                    continue

                logger.info(f"Step {session.current_step + 1}: {session.current_instruction}")
                result = session.capture(image_path)
                if result.status != CaptureStatus.ACCEPTED:
                    logger.warning(f"{image_path}: {result.message}")

            if not session.is_complete:
                logger.error(
                    f"Only {session.current_step} of {session.total_steps} steps accepted"
                )
                return 1

            session.complete(store)
    finally:
        store.close()

    logger.info(f"✓ Registered {args.name} ({args.id})")
    return 0


def cmd_recognize(args):
    """Recognize a face and toggle attendance."""
    store = _open_store(args)
    try:
        with _create_service(args) as service:
            outcome = service.recognize(
                args.image,
                store,
                threshold=args.threshold,
                update_attendance=not args.no_attendance,
            )
    finally:
        store.close()

    print(json.dumps(outcome.to_dict(), indent=2))
    return 0 if outcome.is_match else 1


def cmd_list(args):
    """List registered identities."""
    store = _open_store(args)
    try:
        records = store.list_registered()
    finally:
        store.close()

    for record in records:
        status = "in" if record.checked_in else "out"
        print(f"{record.identity}\t{record.name}\t{status}")
    logger.info(f"{len(records)} registered identities")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="face-attendance",
        description="Face embedding recognition for attendance",
    )
    parser.add_argument("--config", help="Path to config YAML")
    parser.add_argument("--model", help="Path to MobileFaceNet TFLite model")
    parser.add_argument("--seed", type=int, help="Augmentation random seed")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command")

    quality = subparsers.add_parser("quality", help="Check image quality")
    quality.add_argument("image")
    quality.set_defaults(func=cmd_quality)

    embed = subparsers.add_parser("embed", help="Compute a face embedding")
    embed.add_argument("image")
    embed.add_argument("--output", "-o", help="Save embedding as .npy")
    embed.set_defaults(func=cmd_embed)

    register = subparsers.add_parser("register", help="Register an identity")
    register.add_argument("--id", required=True, help="Identity (employee id)")
    register.add_argument("--name", required=True, help="Display name")
    register.add_argument("--db", help="SQLite database path")
    register.add_argument("images", nargs="+", help="One image per pose step")
    register.set_defaults(func=cmd_register)

    recognize = subparsers.add_parser("recognize", help="Recognize and mark attendance")
    recognize.add_argument("image")
    recognize.add_argument("--db", help="SQLite database path")
    recognize.add_argument("--threshold", type=float, help="Similarity threshold")
    recognize.add_argument("--no-attendance", action="store_true",
                           help="Do not toggle attendance state")
    recognize.set_defaults(func=cmd_recognize)

    list_cmd = subparsers.add_parser("list", help="List registered identities")
    list_cmd.add_argument("--db", help="SQLite database path")
    list_cmd.set_defaults(func=cmd_list)

    return parser


def main(argv=None):
    """CLI main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.debug:
        logging.getLogger().setLevel(logging.DEBUG)

    if args.config:
        get_config().reload(Path(args.config))

    if not args.command:
        parser.print_help()
        return 0

    try:
        return args.func(args)
    except FaceAttendanceError as e:
        logger.error(f"{type(e).__name__}: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
