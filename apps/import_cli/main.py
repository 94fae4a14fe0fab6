"""import-cli entrypoint: bulk user import, sign-in and template download."""

from __future__ import annotations

import argparse
import asyncio
import getpass
import logging
import sys
from collections.abc import Sequence
from pathlib import Path
from typing import TextIO

from peeriq.application.ports.import_service_gateway_port import ImportServiceError
from peeriq.application.services.user_import_client import (
    BackendMode,
    ImportOutcome,
    UserImportClient,
    UserImportError,
)
from peeriq.config.settings import Settings, load_settings
from peeriq.domain.user_import.template import write_template
from peeriq.infrastructure.http.import_service_client import (
    HttpImportServiceGateway,
    StaticSessionProvider,
)
from peeriq.infrastructure.logging import configure_logging

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the import CLI."""

    parser = argparse.ArgumentParser(prog="peeriq-import", description="PeerIQ bulk user import")
    subparsers = parser.add_subparsers(dest="command", required=True)

    import_parser = subparsers.add_parser("import", help="import users from a CSV file")
    import_parser.add_argument("file", type=Path, help="CSV file with name,email,department,role")
    import_parser.add_argument(
        "--token",
        default=None,
        help="bearer token of an admin session (defaults to PEERIQ_ACCESS_TOKEN)",
    )
    import_parser.add_argument(
        "--simulate",
        action="store_true",
        help="validate and simulate the import without contacting the service",
    )

    login_parser = subparsers.add_parser("login", help="sign in and print a bearer token")
    login_parser.add_argument("--email", required=True)
    login_parser.add_argument(
        "--password-file",
        type=Path,
        default=None,
        help="read the password from this file instead of prompting",
    )

    template_parser = subparsers.add_parser("template", help="write the example CSV template")
    template_parser.add_argument("directory", type=Path, nargs="?", default=Path("."))

    return parser


def build_import_client(
    *,
    settings: Settings,
    access_token: str | None,
    simulate: bool,
) -> UserImportClient:
    """Wire the import client for the configured (or forced simulated) backend mode."""

    backend_mode = BackendMode.SIMULATED if simulate else BackendMode(settings.import_backend_mode)
    if backend_mode is BackendMode.SIMULATED:
        return UserImportClient(
            backend_mode=backend_mode,
            simulated_delay_seconds=settings.import_simulated_delay_seconds,
        )
    return UserImportClient(
        backend_mode=backend_mode,
        gateway=HttpImportServiceGateway(
            base_url=str(settings.import_service_url),
            timeout_seconds=settings.import_http_timeout_seconds,
        ),
        session_provider=StaticSessionProvider(access_token or settings.access_token),
    )


def render_outcome(outcome: ImportOutcome, *, out: TextIO) -> None:
    """Print aggregate counts, per-row errors and the preview sample."""

    if outcome.simulated:
        out.write("Import simulation completed (demo mode)\n")
    else:
        out.write("User import process completed\n")
    out.write(
        f"Successful: {outcome.successful}  Failed: {outcome.failed}  Total: {outcome.total}\n"
    )
    if outcome.errors:
        out.write("Import errors:\n")
        for error in outcome.errors:
            out.write(f"  - {error}\n")
    if outcome.sample_preview:
        out.write("Preview:\n")
        for row in outcome.sample_preview:
            out.write(f"  {row.get('name', '')} <{row.get('email', '')}> {row.get('role', '')}\n")


async def run_import(
    *,
    client: UserImportClient,
    path: Path,
    out: TextIO,
    err: TextIO,
) -> int:
    """Import one file and return the process exit code."""

    try:
        content = path.read_bytes()
    except OSError as exc:
        err.write(f"Import error: could not read {path}: {exc.strerror or exc}\n")
        return 1

    try:
        outcome = await client.import_file(filename=path.name, content=content)
    except UserImportError as exc:
        err.write(f"Import error: {exc}\n")
        return 1

    render_outcome(outcome, out=out)
    return 0


async def run_login(
    *,
    settings: Settings,
    email: str,
    password: str,
    out: TextIO,
    err: TextIO,
) -> int:
    gateway = HttpImportServiceGateway(
        base_url=str(settings.import_service_url),
        timeout_seconds=settings.import_http_timeout_seconds,
    )
    try:
        token = await gateway.sign_in(email=email, password=password)
    except ImportServiceError as exc:
        err.write(f"Sign-in error: {exc}\n")
        return 1
    out.write(f"{token}\n")
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    """Run the import CLI and return its exit code."""

    args = build_parser().parse_args(argv)
    settings = load_settings()
    configure_logging(level=settings.log_level)

    if args.command == "template":
        target = write_template(args.directory)
        sys.stdout.write(f"Template written to {target}\n")
        return 0

    if args.command == "login":
        if args.password_file is not None:
            password = args.password_file.read_text(encoding="utf-8").strip()
        else:
            password = getpass.getpass("Password: ")
        return asyncio.run(
            run_login(
                settings=settings,
                email=args.email,
                password=password,
                out=sys.stdout,
                err=sys.stderr,
            )
        )

    client = build_import_client(settings=settings, access_token=args.token, simulate=args.simulate)
    logger.info("import_cli_started file=%s mode=%s", args.file, client.backend_mode.value)
    return asyncio.run(run_import(client=client, path=args.file, out=sys.stdout, err=sys.stderr))


if __name__ == "__main__":
    raise SystemExit(main())
