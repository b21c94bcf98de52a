from __future__ import annotations

import argparse
import logging
import os
import shutil
import sys
from pathlib import Path

from bucketftp_core.api import BucketFtpDriver, BucketFtpSession
from bucketftp_core.config import AdapterConfig, build_adapter_config_from_env, load_adapter_config
from bucketftp_core.domain.file_info import FileInfo
from bucketftp_core.errors import BucketFtpError
from bucketftp_core.store.object_store import ObjectStoreClient

COPY_CHUNK_SIZE = 1024 * 1024


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Run FTP-style file operations against the bucket through the adapter."
    )
    parser.add_argument("--config", type=Path, default=None, help="YAML adapter config")
    parser.add_argument("--user", type=str, default=None, help="Defaults to the configured user")
    parser.add_argument(
        "--password", type=str, default=None, help="Defaults to the configured password"
    )
    parser.add_argument("--log-level", type=str, default=os.getenv("LOG_LEVEL", "WARNING"))

    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("ls", help="List a directory")
    p.add_argument("path", nargs="?", default="/")

    p = sub.add_parser("stat", help="Show metadata for a file or directory")
    p.add_argument("path")

    p = sub.add_parser("mkdir", help="Create a directory marker")
    p.add_argument("path")

    p = sub.add_parser("put", help="Upload a local file")
    p.add_argument("local", type=Path)
    p.add_argument("remote")

    p = sub.add_parser("get", help="Download a file")
    p.add_argument("remote")
    p.add_argument("local", type=Path)

    p = sub.add_parser("cat", help="Write a file to stdout")
    p.add_argument("remote")

    p = sub.add_parser("rm", help="Delete a file or a directory recursively")
    p.add_argument("path")

    p = sub.add_parser("mv", help="Rename a file or directory")
    p.add_argument("source")
    p.add_argument("dest")
    return parser


def _load_config(args: argparse.Namespace) -> AdapterConfig:
    if args.config:
        return load_adapter_config(args.config)
    return build_adapter_config_from_env()


def format_entry(info: FileInfo) -> str:
    suffix = "/" if info.is_dir and info.name not in {".", "/"} else ""
    return (
        f"{info.permissions} {info.size:>12} "
        f"{info.modified:%Y-%m-%d %H:%M} {info.name}{suffix}"
    )


def _run(session: BucketFtpSession, args: argparse.Namespace) -> None:
    if args.command == "ls":
        for info in session.list_files(args.path):
            print(format_entry(info))
    elif args.command == "stat":
        print(format_entry(session.stat_file(args.path)))
    elif args.command == "mkdir":
        session.make_directory(args.path)
    elif args.command == "put":
        with open(args.local, "rb") as src, session.open_file(args.remote, "wb") as handle:
            shutil.copyfileobj(src, handle, COPY_CHUNK_SIZE)
    elif args.command == "get":
        with session.open_file(args.remote, "rb") as handle, open(args.local, "wb") as dst:
            shutil.copyfileobj(handle, dst, COPY_CHUNK_SIZE)
    elif args.command == "cat":
        with session.open_file(args.remote, "rb") as handle:
            shutil.copyfileobj(handle, sys.stdout.buffer, COPY_CHUNK_SIZE)
        sys.stdout.flush()
    elif args.command == "rm":
        session.delete_file(args.path)
    elif args.command == "mv":
        session.rename_file(args.source, args.dest)


def main(argv: list[str] | None = None, *, store: ObjectStoreClient | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=args.log_level.upper(), format="%(asctime)s %(levelname)s %(message)s"
    )

    try:
        config = _load_config(args)
        driver = BucketFtpDriver(config, store=store)
        session = driver.authenticate(
            config.ftp_user if args.user is None else args.user,
            config.ftp_password if args.password is None else args.password,
        )
        try:
            _run(session, args)
        finally:
            session.close()
    except (BucketFtpError, ValueError, OSError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
