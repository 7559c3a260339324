"""Command line entry point.

Examples:
    ownnest init-db
    ownnest add-design --owner alice --title Oxford --color white \
        --fabric cotton --buttons mother-of-pearl --image-url https://img.example/1.png
    ownnest list-designs alice
    ownnest tokenize alice
    ownnest serve --port 8000
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from typing import Any, Optional, Sequence

import uvicorn

from ownnest import __version__
from ownnest.core.config import Settings, get_settings
from ownnest.core.container import ConfigurationError, build_container
from ownnest.core.logging import configure_logging
from ownnest.domain.designs import DesignRecord, DesignValidationError, SqlDesignGateway
from ownnest.domain.tokenization import JobStatus, TokenizationJob
from ownnest.infrastructure.database import dispose_engine, get_session_factory, init_db


def job_to_dict(job: TokenizationJob) -> dict[str, Any]:
    return {
        "id": job.id,
        "owner_id": job.owner_id,
        "status": job.status.value,
        "attempts": job.attempts,
        "design_count": job.design_count,
        "payload_sha256": job.payload_sha256,
        "account": {"address": job.account.address, "program_id": job.account.program_id} if job.account else None,
        "signature": job.signature,
        "error": {"kind": job.error.kind.value, "message": job.error.message} if job.error else None,
        "created_at": job.created_at.isoformat(),
        "updated_at": job.updated_at.isoformat(),
    }


async def _init_db() -> None:
    try:
        await init_db()
    finally:
        await dispose_engine()
    print("[done] database schema is up to date")


async def _add_design(record: DesignRecord) -> None:
    try:
        await init_db()
        saved = await SqlDesignGateway(get_session_factory()).save_design(record)
    finally:
        await dispose_engine()
    print(json.dumps(saved.as_dict(), ensure_ascii=False, indent=2))


async def _list_designs(owner_id: str) -> None:
    try:
        await init_db()
        records = await SqlDesignGateway(get_session_factory()).list_designs(owner_id)
    finally:
        await dispose_engine()
    print(json.dumps([record.as_dict() for record in records], ensure_ascii=False, indent=2))


async def _tokenize(owner_id: str, settings: Settings) -> int:
    try:
        await init_db()
        container = build_container(settings)
        try:
            job = await container.orchestrator.tokenize(owner_id)
        finally:
            await container.aclose()
    finally:
        await dispose_engine()
    print(json.dumps(job_to_dict(job), ensure_ascii=False, indent=2))
    return 0 if job.status is JobStatus.TOKENIZED else 1


def _serve(args: argparse.Namespace, settings: Settings) -> None:
    uvicorn.run(
        "ownnest.main:create_app",
        factory=True,
        host=args.host or settings.host,
        port=args.port or settings.port,
        reload=settings.server.reload,
        log_config=None,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="ownnest", description="Design registry with on-chain tokenization")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("init-db", help="Create database tables")

    add = sub.add_parser("add-design", help="Save a design record")
    add.add_argument("--owner", required=True, help="Owner identifier")
    add.add_argument("--title", required=True)
    add.add_argument("--color", required=True)
    add.add_argument("--fabric", required=True)
    add.add_argument("--buttons", required=True)
    add.add_argument("--image-url", required=True, dest="image_url")

    listing = sub.add_parser("list-designs", help="List an owner's designs in insertion order")
    listing.add_argument("owner")

    tokenize = sub.add_parser("tokenize", help="Tokenize an owner's designs and wait for the outcome")
    tokenize.add_argument("owner")

    serve = sub.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", default=None)
    serve.add_argument("--port", type=int, default=None)
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    settings = get_settings()
    configure_logging(settings)

    if args.command == "init-db":
        asyncio.run(_init_db())
    elif args.command == "add-design":
        try:
            record = DesignRecord.create(
                owner_id=args.owner,
                title=args.title,
                color=args.color,
                fabric=args.fabric,
                buttons=args.buttons,
                image_url=args.image_url,
            )
        except DesignValidationError as exc:
            raise SystemExit(f"invalid design: {exc}") from exc
        asyncio.run(_add_design(record))
    elif args.command == "list-designs":
        asyncio.run(_list_designs(args.owner))
    elif args.command == "tokenize":
        try:
            return asyncio.run(_tokenize(args.owner, settings))
        except ConfigurationError as exc:
            raise SystemExit(f"configuration error: {exc}") from exc
    elif args.command == "serve":
        _serve(args, settings)
    return 0


if __name__ == "__main__":
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        sys.exit("aborted by user")
