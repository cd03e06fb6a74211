"""Connectivity diagnostics for the Veeam backup services.

This module serves as a CLI wrapper around veeambackup.core services.
"""
from __future__ import annotations
import argparse
import logging
import sys
from pathlib import Path

SCRIPT_DIR = Path(__file__).parent
PROJECT_ROOT = SCRIPT_DIR.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from veeambackup.config import load_settings
from veeambackup.core.auth import HTTPStatusError, VeeamError
from veeambackup.core.client import VeeamClient
from veeambackup.core.router import detect_service_type


def _check(client: VeeamClient) -> int:
    """Print the session state of every configured service."""
    if not client.services:
        print("[check] No service configured; set VEEAM_AZURE_HOSTNAME or VEEAM_VBR_HOSTNAME", file=sys.stderr)
        return 1
    for name in client.services:
        session = client.router.get(name).session
        state = session.token_state
        status = "authenticated" if session.is_authenticated() else "not authenticated"
        print(f"{name}: {status} at {session.base_url} (api {session.api_version}, expires {state.expires_at.isoformat()})")
    return 0


def main() -> None:
    """Command-line entry point."""
    parser = argparse.ArgumentParser(description="Veeam backup session diagnostics")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")

    sub = parser.add_subparsers(dest="cmd")

    sd = sub.add_parser("detect", help="Guess the service behind a hostname/port")
    sd.add_argument("--hostname", required=True)
    sd.add_argument("--port", default=None)

    sub.add_parser("check", help="Authenticate every configured service, then log out")

    sg = sub.add_parser("get", help="Authenticated GET on behalf of a resource type")
    sg.add_argument("resource_type")
    sg.add_argument("endpoint")

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    if not args.cmd:
        parser.print_help()
        return

    if args.cmd == "detect":
        print(detect_service_type(args.hostname, args.port))
        return

    try:
        config = load_settings()
    except RuntimeError as e:
        print(f"[{args.cmd}] Error: {e}", file=sys.stderr)
        sys.exit(1)

    try:
        with VeeamClient.from_config(config) as client:
            if args.cmd == "check":
                code = _check(client)
                if code:
                    sys.exit(code)
            elif args.cmd == "get":
                service_client = client.client_for(args.resource_type)
                body = service_client.do_request("GET", service_client.build_api_url(args.endpoint))
                print(body.decode("utf-8", "replace"))
            else:
                parser.print_help()
    except HTTPStatusError as e:
        print(f"[{args.cmd}] Error: {e}", file=sys.stderr)
        if e.body:
            print(e.body.decode("utf-8", "replace"), file=sys.stderr)
        sys.exit(1)
    except VeeamError as e:
        print(f"[{args.cmd}] Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
