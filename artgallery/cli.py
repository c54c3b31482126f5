"""Administrative commands.

Usage:
    artgallery-admin init
    artgallery-admin create-profile EMAIL
    artgallery-admin set-admin EMAIL [--revoke]
    artgallery-admin batch-upload DIRECTORY [--category C] [--medium M] [--size S] [--recursive] [--dry-run]

A user must have signed in once before a profile can be attached to them.
"""

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from .aws import profiles, schema
from .core.logging import get_logger, setup_logging
from .services import gallery

logger = get_logger(__name__)

SUPPORTED_EXTENSIONS = {".jpg", ".jpeg", ".png", ".webp", ".gif"}


def cmd_init(args: argparse.Namespace) -> int:
    created = schema.create_tables()
    bucket_created = schema.create_bucket()
    logger.info("init_complete", tables_created=created, bucket_created=bucket_created)
    return 0


def _user_or_fail(email: str) -> Optional[dict]:
    user = profiles.find_user_by_email(email)
    if not user:
        logger.error("user_not_found", email=email)
    return user


def cmd_create_profile(args: argparse.Namespace) -> int:
    user = _user_or_fail(args.email)
    if not user:
        return 1
    profile = profiles.ensure_profile(user["user_id"], user["email"], role="admin")
    if profile.get("role") != "admin":
        profile = profiles.set_role(user["user_id"], "admin")
    logger.info("admin_profile_ready", email=args.email, username=profile["username"])
    return 0


def cmd_set_admin(args: argparse.Namespace) -> int:
    user = _user_or_fail(args.email)
    if not user:
        return 1
    role = "user" if args.revoke else "admin"
    try:
        profiles.set_role(user["user_id"], role)
    except KeyError:
        logger.error("profile_not_found", email=args.email)
        return 1
    logger.info("role_set", email=args.email, role=role)
    return 0


def find_images(directory: Path, recursive: bool = False) -> List[Path]:
    pattern = "**/*" if recursive else "*"
    return sorted(
        p for p in directory.glob(pattern) if p.is_file() and p.suffix.lower() in SUPPORTED_EXTENSIONS
    )


def cmd_batch_upload(args: argparse.Namespace) -> int:
    directory = Path(args.directory)
    if not directory.is_dir():
        logger.error("directory_not_found", directory=str(directory))
        return 1
    paths = find_images(directory, args.recursive)
    if not paths:
        logger.warning("no_images_found", directory=str(directory))
        return 0
    logger.info("batch_upload_started", directory=str(directory), files=len(paths), dry_run=args.dry_run)
    if args.dry_run:
        for path in paths:
            print(path)
        return 0

    files = [(path.name, path.read_bytes()) for path in paths]
    summary = gallery.batch_upload(files, category=args.category, medium=args.medium, size=args.size)
    for result in summary["results"]:
        if result["status"] != "ok":
            logger.error("upload_failed", filename=result["filename"], error=result["error"])
    logger.info(
        "batch_upload_finished",
        total=summary["total"],
        succeeded=summary["succeeded"],
        failed=summary["failed"],
    )
    print(f"Batch upload complete. Successful: {summary['succeeded']}, Failed: {summary['failed']}")
    return 0 if summary["failed"] == 0 else 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="artgallery-admin", description="Gallery administration")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("init", help="Create DynamoDB tables and the S3 bucket").set_defaults(func=cmd_init)

    p = sub.add_parser("create-profile", help="Create an admin profile for a signed-in user")
    p.add_argument("email")
    p.set_defaults(func=cmd_create_profile)

    p = sub.add_parser("set-admin", help="Grant (or revoke) the admin role")
    p.add_argument("email")
    p.add_argument("--revoke", action="store_true", help="Set the role back to user")
    p.set_defaults(func=cmd_set_admin)

    p = sub.add_parser("batch-upload", help="Upload every image in a directory")
    p.add_argument("directory")
    p.add_argument("--category")
    p.add_argument("--medium")
    p.add_argument("--size")
    p.add_argument("--recursive", action="store_true")
    p.add_argument("--dry-run", action="store_true")
    p.set_defaults(func=cmd_batch_upload)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    setup_logging()
    args = build_parser().parse_args(argv)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
