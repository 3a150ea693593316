"""
Command-line interface for the OMERO web client.

Subcommands: ``login`` (log in, report the session, log out), ``access``
(quick accessibility check of an object link) and ``servers`` (list the
servers used before).
"""

import argparse
import getpass
import sys
from pathlib import Path

import requests

from omero_web_client.access import can_be_accessed
from omero_web_client.auth import Credentials
from omero_web_client.client import SessionClient
from omero_web_client.config import DEFAULT_PASSWORD, DEFAULT_USER
from omero_web_client.errors import OmeroError
from omero_web_client.logging_setup import _setup_logging, log
from omero_web_client.objects import OmeroObjectType
from omero_web_client.registry import ServerHistory
from omero_web_client.session import build_session


def prompt_credentials(server: str, last_username: str) -> Credentials | None:
    """Ask for credentials on the terminal; None when the user aborts."""
    try:
        username = input(f"Username for {server} [{last_username}]: ").strip() or last_username
        password = getpass.getpass("Password: ")
    except (EOFError, KeyboardInterrupt):
        return None
    if not username:
        return None
    return Credentials(username, password)


def parse_args(argv=None) -> argparse.Namespace:
    """
    Parse command-line arguments.

    Returns:
        Parsed arguments namespace
    """
    parser = argparse.ArgumentParser(
        description="Session client for OMERO web servers.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Username and password can also be provided via the OMERO_USER and\n"
            "OMERO_PASSWORD env vars. Missing values are prompted for."
        ),
    )
    parser.add_argument(
        "--no-verify-ssl", dest="verify_ssl", action="store_false", default=True,
        help="Disable TLS certificate verification (use for self-signed certs)",
    )
    parser.add_argument(
        "--debug", action="store_true",
        help="Enable verbose debug logging",
    )
    parser.add_argument(
        "--log-file", type=Path, default=None,
        help="Also write log records to this file",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    p_login = sub.add_parser("login", help="Log in, show the session and log out")
    p_login.add_argument("url", help="OMERO server URL (e.g. https://idr.openmicroscopy.org)")
    p_login.add_argument("--user", default=DEFAULT_USER, help="OMERO username")
    p_login.add_argument(
        "--password", default=DEFAULT_PASSWORD,
        help="OMERO password (overrides OMERO_PASSWORD env var)",
    )

    p_access = sub.add_parser("access", help="Check whether an object link is accessible")
    p_access.add_argument("uri", help="Link to an OMERO project, dataset or image")
    p_access.add_argument(
        "--type", dest="object_type", default="image",
        choices=[t.link_name for t in OmeroObjectType],
        help="Object type the link points at (default: image)",
    )

    sub.add_parser("servers", help="List previously used servers")
    return parser.parse_args(argv)


def _run_login(args: argparse.Namespace) -> int:
    session = build_session(verify_ssl=args.verify_ssl)
    try:
        client = SessionClient.create(args.url, session=session, prompt=prompt_credentials)
    except (OmeroError, requests.RequestException) as exc:
        log.error("Could not reach OMERO web server at %s: %s", args.url, exc)
        return 1
    ServerHistory().add(client.server_uri)

    credentials = None
    if args.user:
        password = args.password or getpass.getpass(f"Password for {args.user}: ")
        credentials = Credentials(args.user, password)
    result = client.login(credentials)
    if not result:
        log.error(
            "Could not connect to OMERO web server (%s).\nCheck the following:\n"
            "- Valid credentials.\n- Access permission.\n- Correct URL.", result.cause,
        )
        return 1

    group = client.default_group
    print(f"Server:        {client.server_uri} ({client.server_record})")
    print(f"User:          {client.username} (id {client.user_id})")
    print(f"Default group: {group.name if group else '-'} (id {group.id if group else '-'})")
    print(f"Microservice:  {'yes' if client.has_microservice else 'no'}")
    print(f"Logged in:     {client.check_if_logged_in()}")
    try:
        client.logout()
    except (OmeroError, requests.RequestException) as exc:
        log.error("Could not logout: %s", exc)
        return 1
    return 0


def main(argv=None) -> int:
    """
    Main entry point for the CLI.
    """
    args = parse_args(argv)

    _setup_logging(debug=args.debug, log_file=args.log_file)

    if not args.verify_ssl:
        import urllib3
        urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)
        log.warning("TLS certificate verification is DISABLED (--no-verify-ssl)")

    if args.command == "login":
        return _run_login(args)

    if args.command == "access":
        object_type = OmeroObjectType.from_string(args.object_type)
        session = build_session(verify_ssl=args.verify_ssl)
        ok = can_be_accessed(args.uri, object_type, session=session)
        print(f"{args.uri}: {'accessible' if ok else 'not accessible'}")
        return 0 if ok else 1

    for server in ServerHistory().load():
        print(server)
    return 0


if __name__ == "__main__":
    sys.exit(main())
