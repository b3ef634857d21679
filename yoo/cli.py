"""Command-line entry point.

Usage::

    yoo create
    yoo submit --branch dev
    yoo --server https://registry.example.com --debug create
"""

from __future__ import annotations

import argparse
import asyncio
import sys

from pydantic import ValidationError

from yoo import __version__
from yoo.commands import create, submit
from yoo.config import Config
from yoo.errors import UserCancelled, YooError
from yoo.utils import print_error, print_warning, set_debug


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="yoo",
        description="Scaffold a project from a template, create its repository and register it",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  yoo create\n"
            "  yoo submit --branch dev\n"
            "\n"
            "Settings are read from YOO_* and GITLAB_* environment variables;\n"
            "flags override them.\n"
        ),
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--server", help="Registration service URL (YOO_SERVER)")
    parser.add_argument("--email", help="Registration service login (YOO_EMAIL)")
    parser.add_argument("--password", help="Registration service password (YOO_PASSWORD)")
    parser.add_argument("--gitlab-url", help="GitLab base URL (GITLAB_URL)")
    parser.add_argument("--gitlab-token", help="GitLab access token (GITLAB_TOKEN)")
    parser.add_argument(
        "--debug", action="store_true", default=None, help="Print debug output (YOO_DEBUG)"
    )

    subparsers = parser.add_subparsers(dest="command")

    create_parser = subparsers.add_parser("create", help="Create a new project")
    create_parser.add_argument(
        "--no-rollback",
        action="store_true",
        help="On failure, print what was created instead of removing it",
    )

    submit_parser = subparsers.add_parser("submit", help="Push a branch of this project")
    submit_parser.add_argument("--branch", "-b", default=None, help="Branch to push")

    return parser


def load_config(args: argparse.Namespace) -> Config:
    return Config.from_env().with_overrides(
        server__url=args.server,
        server__email=args.email,
        server__password=args.password,
        gitlab__url=args.gitlab_url,
        gitlab__token=args.gitlab_token,
        debug=args.debug,
    )


async def dispatch(args: argparse.Namespace, config: Config) -> int:
    if args.command == "create":
        return await create(config, rollback=not args.no_rollback)
    if args.command == "submit":
        return await submit(config, branch=args.branch)
    raise ValueError(f"Unknown command: {args.command}")


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for ``yoo`` and ``python -m yoo``."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    try:
        config = load_config(args)
    except (ValidationError, ValueError) as exc:
        print_error(f"Invalid configuration: {exc}")
        sys.exit(2)
    set_debug(config.debug)

    try:
        code = asyncio.run(dispatch(args, config))
    except UserCancelled as exc:
        print_warning(str(exc))
        code = 0
    except YooError as exc:
        print_error(f"Error: {exc}")
        code = 1
    except KeyboardInterrupt:
        print_warning("Interrupted.")
        code = 130

    sys.exit(code)


if __name__ == "__main__":
    main()
