"""Moderation and enablement commands.

There is no authenticated HTTP API for moderators; whoever can reach Redis
runs these instead.

Usage:
    pagecomments-admin hosts list
    pagecomments-admin hosts add example.com
    pagecomments-admin enable https://example.com/post
    pagecomments-admin pending https://example.com/post
    pagecomments-admin approve https://example.com/post 1700000000
    pagecomments-admin retract https://example.com/post 1700000000
    pagecomments-admin reclassify https://example.com/post
"""

import argparse
import asyncio
import sys
from collections.abc import Awaitable, Callable

import structlog

from pagecomments.comments.exceptions import CommentError
from pagecomments.comments.models import Thread
from pagecomments.comments.service import CommentService
from pagecomments.config import get_settings
from pagecomments.core.context import RequestContext, set_thread
from pagecomments.core.logging import configure_structlog
from pagecomments.core.redis import init_redis, shutdown_redis


logger = structlog.get_logger(__name__)

Command = Callable[[CommentService, argparse.Namespace], Awaitable[int]]


def _thread(args: argparse.Namespace) -> Thread:
    thread = Thread.from_url(args.url)
    set_thread(str(thread))
    return thread


async def hosts_list(service: CommentService, args: argparse.Namespace) -> int:
    for host in await service.list_auto_enable_hosts():
        print(host)
    return 0


async def hosts_add(service: CommentService, args: argparse.Namespace) -> int:
    added = await service.add_auto_enable_host(args.host)
    print("added" if added else "already present")
    return 0


async def hosts_remove(service: CommentService, args: argparse.Namespace) -> int:
    removed = await service.remove_auto_enable_host(args.host)
    print("removed" if removed else "not present")
    return 0


async def enable(service: CommentService, args: argparse.Namespace) -> int:
    await service.set_enabled(_thread(args), True)
    return 0


async def disable(service: CommentService, args: argparse.Namespace) -> int:
    await service.set_enabled(_thread(args), False)
    return 0


async def reset(service: CommentService, args: argparse.Namespace) -> int:
    cleared = await service.clear_enabled(_thread(args))
    print("cleared" if cleared else "no flag set")
    return 0


async def status(service: CommentService, args: argparse.Namespace) -> int:
    enabled = await service.is_enabled(_thread(args))
    print("enabled" if enabled else "disabled")
    return 0


async def pending(service: CommentService, args: argparse.Namespace) -> int:
    for comment_id in await service.list_pending(_thread(args), args.limit):
        print(comment_id)
    return 0


async def show(service: CommentService, args: argparse.Namespace) -> int:
    record = await service.get_comment(_thread(args), args.comment_id)
    for key, value in record.to_hash().items():
        print(f"{key}: {value}")
    return 0


async def approve(service: CommentService, args: argparse.Namespace) -> int:
    added = await service.approve(_thread(args), args.comment_id)
    print("approved" if added else "already approved")
    return 0


async def retract(service: CommentService, args: argparse.Namespace) -> int:
    removed = await service.retract(_thread(args), args.comment_id)
    print("retracted" if removed else "was not approved")
    return 0


async def reclassify(service: CommentService, args: argparse.Namespace) -> int:
    if not service.classifier.configured:
        print("AKISMET_KEY is not set", file=sys.stderr)
        return 1
    report = await service.reclassify(_thread(args))
    print(
        f"approved={len(report.approved)} "
        f"pending={len(report.still_pending)} "
        f"failed={len(report.failed)}"
    )
    return 1 if report.failed else 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pagecomments-admin", description="Moderate comment threads."
    )
    commands = parser.add_subparsers(dest="command", required=True)

    hosts = commands.add_parser("hosts", help="manage the auto-enable host set")
    host_commands = hosts.add_subparsers(dest="hosts_command", required=True)
    host_commands.add_parser("list").set_defaults(func=hosts_list)
    for name, func in (("add", hosts_add), ("remove", hosts_remove)):
        sub = host_commands.add_parser(name)
        sub.add_argument("host")
        sub.set_defaults(func=func)

    for name, func, help_text in (
        ("enable", enable, "accept comments on a page"),
        ("disable", disable, "refuse comments on a page"),
        ("reset", reset, "drop the page flag, fall back to the host set"),
        ("status", status, "show whether a page accepts comments"),
        ("reclassify", reclassify, "retry Akismet for pending comments"),
    ):
        sub = commands.add_parser(name, help=help_text)
        sub.add_argument("url")
        sub.set_defaults(func=func)

    sub = commands.add_parser("pending", help="list unapproved comment ids")
    sub.add_argument("url")
    sub.add_argument("--limit", type=int, default=None)
    sub.set_defaults(func=pending)

    for name, func, help_text in (
        ("show", show, "print a stored comment"),
        ("approve", approve, "approve a comment without Akismet"),
        ("retract", retract, "mark an approved comment as spam"),
    ):
        sub = commands.add_parser(name, help=help_text)
        sub.add_argument("url")
        sub.add_argument("comment_id", type=int)
        sub.set_defaults(func=func)

    return parser


async def run(args: argparse.Namespace, service: CommentService) -> int:
    """Run one command, reporting comment errors on stderr."""
    with RequestContext(correlation_id=f"admin:{args.command}"):
        try:
            return await args.func(service, args)
        except CommentError as e:
            logger.warning("admin_command_failed", code=e.code, error=e.message)
            print(f"error: {e.message}", file=sys.stderr)
            return 1


async def _main(args: argparse.Namespace) -> int:
    settings = get_settings()
    redis_client = await init_redis(settings)
    service = CommentService.from_settings(redis_client, settings)
    try:
        return await run(args, service)
    finally:
        await service.aclose()
        await shutdown_redis(redis_client)


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    settings = get_settings()
    configure_structlog(settings)
    sys.exit(asyncio.run(_main(args)))


if __name__ == "__main__":
    main()
