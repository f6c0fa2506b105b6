"""Application entry point for the guestbook CLI."""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from typing import Optional

from art import tprint
from dotenv import load_dotenv

import settings
from adapters.feed_formatting import DIVIDER, format_entry, format_pagination
from adapters.local_identity import LocalCodeIssuer, LocalSessionProvider
from adapters.sqlite_storage import SQLiteStorage
from core.config import FeedConfig, PostingLimits, VerificationConfig
from core.errors import GuestbookError, NotVerified, Unauthenticated
from core.feed import apply_ignore_list
from core.guestbook import GuestbookService
from core.models import Identity

NAME = "GUESTBOOK"
FONT = "tarty-1"


def _print_banner() -> None:
    tprint(NAME, FONT, space=1)


class _RedactingFormatter(logging.Formatter):
    def __init__(self, secrets: list[str], fmt: str, datefmt: Optional[str] = None) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt)
        self._secrets = [secret for secret in secrets if secret]

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        for secret in self._secrets:
            message = message.replace(secret, "***")
        return message


def _collect_redaction_values(config: dict) -> list[str]:
    redact_cfg = config.get("redact", {}) if config else {}
    if not redact_cfg.get("enabled", False):
        return []
    values = []
    for name in redact_cfg.get("patterns", []):
        value = os.getenv(name)
        if value:
            values.append(value)
    return sorted(set(values), key=len, reverse=True)


def _configure_logging() -> None:
    config = settings.LOGGING or {}
    if not config.get("enabled", False):
        return

    load_dotenv()
    level_name = str(config.get("level", "INFO")).upper()
    level = getattr(logging, level_name, logging.INFO)

    fmt = "%(asctime)s %(levelname)s %(name)s: %(message)s"
    datefmt = "%Y-%m-%d %H:%M:%S"
    secrets = _collect_redaction_values(config)
    formatter = _RedactingFormatter(secrets, fmt=fmt, datefmt=datefmt)

    handlers: list[logging.Handler] = []

    if config.get("console", True):
        # stderr keeps command output (and --json) clean on stdout.
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        handlers.append(console_handler)

    file_cfg = config.get("file", {})
    if file_cfg.get("enabled", False):
        path = file_cfg.get("path", "logs/guestbook.log")
        if not os.path.isabs(path):
            path = os.path.join(settings.PROJECT_ROOT, path)
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        max_bytes = int(file_cfg.get("max_bytes", 5 * 1024 * 1024))
        backup_count = int(file_cfg.get("backup_count", 5))
        file_handler = RotatingFileHandler(
            path,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    if not handlers:
        return

    logging.basicConfig(level=level, handlers=handlers)


def _build() -> tuple[SQLiteStorage, GuestbookService, LocalSessionProvider]:
    storage = SQLiteStorage(settings.DB_PATH)
    storage.init_db()

    limits = PostingLimits(
        root_max_length=settings.ROOT_MAX_LENGTH,
        reply_max_length=settings.REPLY_MAX_LENGTH,
        min_length=settings.MIN_LENGTH,
        allow_links=settings.ALLOW_LINKS,
        allow_profanity=settings.ALLOW_PROFANITY,
        blocked_words=settings.BLOCKED_WORDS,
    )
    feed_config = FeedConfig(creator_label=settings.CREATOR_LABEL, page_size=settings.PAGE_SIZE)
    codes = LocalCodeIssuer(
        storage,
        VerificationConfig(
            code_length=settings.CODE_LENGTH,
            ttl_minutes=settings.CODE_TTL_MINUTES,
            max_attempts=settings.CODE_MAX_ATTEMPTS,
        ),
    )
    service = GuestbookService(
        messages=storage,
        preferences=storage,
        codes=codes,
        limits=limits,
        feed_config=feed_config,
    )
    return storage, service, LocalSessionProvider(storage, codes)


def _cmd_init(args: argparse.Namespace) -> None:
    _print_banner()
    storage, _, _ = _build()
    removed = storage.cleanup_expired_codes()
    logging.getLogger(__name__).info("Database ready at %s (%s expired codes removed)", settings.DB_PATH, removed)


def _cmd_add_author(args: argparse.Namespace) -> None:
    _, service, sessions = _build()
    session = sessions.register(
        Identity(
            id=args.id,
            email=args.email,
            email_verified=args.verified,
            display_username=args.display_name,
            username=args.username,
            name=args.name,
        )
    )
    print(f"Author {session.identity.id} saved as '{session.identity.label}'")
    if not session.identity.email_verified:
        print(service.verification_status(session).prompt)


def _print_page(page, ignored: list[str], show_ignored: bool, as_json: bool) -> None:
    entries = apply_ignore_list(page.entries, ignored, show_ignored=show_ignored)
    if as_json:
        payload = page.to_dict()
        payload["entries"] = [entry.to_dict() for entry in entries]
        print(json.dumps(payload, indent=2, ensure_ascii=False))
        return

    if not entries:
        print("No messages yet. Be the first to leave one!")
    for entry in entries:
        print(format_entry(entry))
        print(DIVIDER)
    print(format_pagination(page.pagination, visible=len(entries)))
    if ignored and not show_ignored:
        count = len(ignored)
        print(f"{count} user{'' if count == 1 else 's'} ignored (use --show-ignored to see them)")


def _cmd_feed(args: argparse.Namespace) -> None:
    _, service, _ = _build()
    page = service.get_feed_page(args.page, args.limit)
    ignored = service.get_ignore_list(args.viewer) if args.viewer else []
    _print_page(page, ignored, args.show_ignored, args.json)


def _cmd_posts(args: argparse.Namespace) -> None:
    _, service, _ = _build()
    page = service.get_author_posts(args.author_id, args.page, args.limit)
    _print_page(page, [], True, args.json)


def _cmd_post(args: argparse.Namespace) -> None:
    _, service, sessions = _build()
    session = sessions.get_session(args.user)
    view = service.post_message(session, args.text, reply_to_id=args.reply_to)
    print(format_entry(view))


def _cmd_ignored(args: argparse.Namespace) -> None:
    _, service, _ = _build()
    ignored = service.get_ignore_list(args.viewer)
    if not ignored:
        print("No ignored users")
    for label in ignored:
        print(label)


def _cmd_ignore(args: argparse.Namespace) -> None:
    _, service, _ = _build()
    updated = service.toggle_ignored(args.viewer, args.label)
    state = "ignored" if args.label in updated else "no longer ignored"
    print(f"{args.label} is {state}")


def _cmd_send_code(args: argparse.Namespace) -> None:
    _, service, sessions = _build()
    status = service.request_verification_code(sessions.get_session(args.user))
    print(status.prompt)


def _cmd_verify(args: argparse.Namespace) -> None:
    _, service, sessions = _build()
    status = service.submit_verification_code(sessions.get_session(args.user), args.code)
    print(status.prompt)


def _cmd_browse(args: argparse.Namespace) -> None:
    _print_banner()
    from frontend.app import FeedBrowserApp

    _, service, sessions = _build()
    FeedBrowserApp(
        service=service,
        sessions=sessions,
        viewer_id=args.viewer,
        page_size=args.limit or service.default_page_size,
    ).run()


def _positive_int(value: str) -> int:
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError("must be a positive integer")
    return number


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="guestbook")
    subparsers = parser.add_subparsers(dest="command", required=True)

    init = subparsers.add_parser("init", help="Create the database tables")
    init.set_defaults(handler=_cmd_init)

    add_author = subparsers.add_parser("add-author", help="Register a local author (development)")
    add_author.add_argument("--id", required=True)
    add_author.add_argument("--email", required=True)
    add_author.add_argument("--display-name")
    add_author.add_argument("--username", required=True)
    add_author.add_argument("--name")
    add_author.add_argument("--verified", action="store_true")
    add_author.set_defaults(handler=_cmd_add_author)

    feed = subparsers.add_parser("feed", help="Show a page of the feed")
    feed.add_argument("--page", type=_positive_int, default=1)
    feed.add_argument("--limit", type=_positive_int)
    feed.add_argument("--viewer", help="Apply this viewer's ignore list")
    feed.add_argument("--show-ignored", action="store_true")
    feed.add_argument("--json", action="store_true")
    feed.set_defaults(handler=_cmd_feed)

    posts = subparsers.add_parser("posts", help="Show one author's messages")
    posts.add_argument("author_id")
    posts.add_argument("--page", type=_positive_int, default=1)
    posts.add_argument("--limit", type=_positive_int)
    posts.add_argument("--json", action="store_true")
    posts.set_defaults(handler=_cmd_posts)

    post = subparsers.add_parser("post", help="Post a message or a reply")
    post.add_argument("--user", required=True)
    post.add_argument("--reply-to")
    post.add_argument("text")
    post.set_defaults(handler=_cmd_post)

    ignored = subparsers.add_parser("ignored", help="List a viewer's ignored users")
    ignored.add_argument("--viewer", required=True)
    ignored.set_defaults(handler=_cmd_ignored)

    ignore = subparsers.add_parser("ignore", help="Toggle ignoring an author label")
    ignore.add_argument("--viewer", required=True)
    ignore.add_argument("label")
    ignore.set_defaults(handler=_cmd_ignore)

    send_code = subparsers.add_parser("send-code", help="Send an email verification code")
    send_code.add_argument("--user", required=True)
    send_code.set_defaults(handler=_cmd_send_code)

    verify = subparsers.add_parser("verify", help="Submit an email verification code")
    verify.add_argument("--user", required=True)
    verify.add_argument("code")
    verify.set_defaults(handler=_cmd_verify)

    browse = subparsers.add_parser("browse", help="Open the feed browser")
    browse.add_argument("--viewer")
    browse.add_argument("--limit", type=_positive_int)
    browse.set_defaults(handler=_cmd_browse)

    return parser


def main(argv: Optional[list[str]] = None) -> None:
    args = _build_parser().parse_args(argv)
    _configure_logging()
    try:
        args.handler(args)
    except Unauthenticated as exc:
        print(f"error: {exc} (unknown user?)", file=sys.stderr)
        sys.exit(1)
    except NotVerified as exc:
        print(f"error: {exc}. Run 'guestbook send-code --user <id>' first.", file=sys.stderr)
        sys.exit(1)
    except GuestbookError as exc:
        print(f"error: {exc}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
