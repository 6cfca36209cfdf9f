"""
MultiTool CLI: entry points for the MCP server and its setup helpers.

Usage:
    multitool [serve]
    multitool gdrive-auth [options]
    multitool doctor
    multitool --help

Commands:
    serve           Run the stdio MCP server (default).
    gdrive-auth     Run the Google OAuth browser flow and save credentials.
    doctor          Report which adapters are configured.
"""

from __future__ import annotations

import argparse
import sys
from typing import Optional

from multitool.core.config import MultiToolConfig, get_config
from multitool.core.errors import MultiToolError
from multitool.version import __version__


# ─────────────────────────────────────────────────────────────────────────────
# Commands
# ─────────────────────────────────────────────────────────────────────────────

def cmd_serve(args: argparse.Namespace) -> int:
    import mcp_wrapper

    mcp_wrapper.main()
    return 0


def cmd_gdrive_auth(args: argparse.Namespace, config: Optional[MultiToolConfig] = None) -> int:
    """
    Run the OAuth flow and write the authorized-user credentials file.

    Exit codes:
      0 = credentials saved
      2 = OAuth key file missing or the flow failed
    """
    from multitool.services.gdrive import authenticate_and_save

    config = config or get_config()
    gdrive = config.gdrive
    updates = {}
    if args.oauth_path:
        updates["oauth_path"] = args.oauth_path
    if args.credentials_path:
        updates["credentials_path"] = args.credentials_path
    if updates:
        gdrive = gdrive.model_copy(update=updates)

    try:
        authenticate_and_save(gdrive)
    except MultiToolError as exc:
        print(f"Google Drive authentication failed: {exc}", file=sys.stderr)
        return 2
    print(f"Credentials saved to {gdrive.credentials_path}")
    return 0


def cmd_doctor(args: argparse.Namespace, config: Optional[MultiToolConfig] = None) -> int:
    """
    Print adapter configuration status.

    Exit codes:
      0 = every adapter configured
      1 = one or more adapters disabled
    """
    config = config or get_config()
    status = config.adapter_status()
    warnings = config.startup_warnings()

    print("\nMultiTool Doctor")
    print("=" * 50)
    print(f"Version: {__version__}")
    for name, ok in status.items():
        print(f"{name:<10} {'OK' if ok else 'NOT CONFIGURED'}")
    if warnings:
        print("Warnings:")
        for warning in warnings:
            print(f"  - {warning}")
    print()

    return 1 if warnings else 0


# ─────────────────────────────────────────────────────────────────────────────
# Argument parser
# ─────────────────────────────────────────────────────────────────────────────

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="multitool",
        description="MultiTool MCP server for Obsidian, Brave Search, Kibela, Google Drive and Slack.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="Examples:\n"
               "  multitool\n"
               "  multitool doctor\n"
               "  multitool gdrive-auth --oauth-path ~/gcp-oauth.keys.json\n",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("serve", help="Run the stdio MCP server.")

    auth = subparsers.add_parser(
        "gdrive-auth",
        help="Authorize Google Drive access and save credentials.",
        description=(
            "Opens a browser for the Google OAuth consent screen and writes the\n"
            "resulting credentials to GDRIVE_CREDENTIALS_PATH."
        ),
    )
    auth.add_argument(
        "--oauth-path",
        default=None,
        metavar="PATH",
        help="OAuth client key file (default: GDRIVE_OAUTH_PATH).",
    )
    auth.add_argument(
        "--credentials-path",
        default=None,
        metavar="PATH",
        help="Where to save the credentials (default: GDRIVE_CREDENTIALS_PATH).",
    )

    subparsers.add_parser("doctor", help="Report which adapters are configured.")
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command in (None, "serve"):
        return cmd_serve(args)
    if args.command == "gdrive-auth":
        return cmd_gdrive_auth(args)
    if args.command == "doctor":
        return cmd_doctor(args)

    parser.print_help()
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
