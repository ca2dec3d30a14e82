"""
Command-line interface for NZCP Verifier.

Usage:
    nzcp-verify NZCP:/1/2KCEVIQ...
    nzcp-verify --offline NZCP:/1/2KCEVIQ...
    zbarimg -q --raw pass.png | nzcp-verify -
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from nzcp_verifier.did_resolver import DIDDocument, DIDResolutionError, DIDResolver
from nzcp_verifier.trust import (
    DEFAULT_DID_DOCUMENTS,
    DEFAULT_TRUSTED_ISSUERS,
    DID_DOCUMENTS,
    TRUSTED_ISSUERS,
)
from nzcp_verifier.verifier import PassVerifier, VerificationResult


console = Console()


def format_result(result: VerificationResult) -> None:
    """Format and print verification result."""
    if result.success:
        status_icon = "[bold green]VALID[/]"
        panel_style = "green"
    else:
        status_icon = "[bold red]INVALID[/]"
        panel_style = "red"

    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column("Field", style="dim")
    table.add_column("Value")

    table.add_row("Status", status_icon)

    subject = result.credential_subject
    if subject:
        table.add_row("Given Name", subject.given_name)
        if subject.family_name:
            table.add_row("Family Name", subject.family_name)
        table.add_row("Date of Birth", subject.dob)

    if result.raw:
        table.add_row("Issuer", result.raw.iss)
        table.add_row("Pass ID", result.raw.jti)
    if result.valid_from:
        table.add_row("Valid From", result.valid_from.isoformat())
    if result.expires:
        table.add_row("Expires", result.expires.isoformat())

    violation = result.violates
    if violation:
        table.add_row("Violation", f"[red]{violation.message}[/]")
        table.add_row("Section", violation.section)
        table.add_row("Reference", violation.link)
        if violation.description:
            table.add_row("Detail", violation.description)

    console.print(Panel(table, title="Verification Result", border_style=panel_style))


def load_pass(source: str) -> str:
    """Load the pass payload from the argument or stdin ("-")."""
    if source == "-":
        return sys.stdin.read().strip()
    return source.strip()


def load_did_document(path: str) -> DIDDocument:
    """Load a DID Document from a JSON file."""
    try:
        with Path(path).open() as f:
            return DIDDocument.from_dict(json.load(f))
    except (OSError, ValueError, DIDResolutionError) as e:
        raise click.BadParameter(
            f"Cannot load DID Document {path}: {e}", param_hint="--did-document"
        ) from e


@click.command()
@click.argument("source", required=True)
@click.option(
    "--offline",
    is_flag=True,
    help="Use bundled or supplied DID Documents instead of resolving did:web",
)
@click.option(
    "--trusted-issuer",
    "trusted_issuers",
    multiple=True,
    help="Trusted issuer DID (repeatable, default: the live MoH issuer)",
)
@click.option(
    "--did-document",
    "did_document_paths",
    multiple=True,
    type=click.Path(dir_okay=False),
    help="DID Document JSON file to verify against (repeatable, implies --offline)",
)
@click.option(
    "--example",
    is_flag=True,
    help="Trust the issuer and DID Document of the published NZCP example passes",
)
@click.option(
    "--no-ssl-verify",
    is_flag=True,
    help="Disable SSL certificate verification",
)
@click.option(
    "--json-output",
    is_flag=True,
    help="Output result as JSON",
)
@click.option(
    "--timeout",
    type=float,
    default=30.0,
    help="HTTP request timeout in seconds",
)
@click.option("--verbose", "-v", is_flag=True, help="Log each verification step")
@click.version_option(package_name="nzcp-verifier")
def main(
    source: str,
    offline: bool,
    trusted_issuers: tuple[str, ...],
    did_document_paths: tuple[str, ...],
    example: bool,
    no_ssl_verify: bool,
    json_output: bool,
    timeout: float,
    verbose: bool,
) -> None:
    """Verify a New Zealand COVID Pass.

    SOURCE is the QR code payload (NZCP:/1/...) or "-" to read it from stdin.

    Examples:

        nzcp-verify NZCP:/1/2KCEVIQEIVVWK6JNGEASNICZAEP2KALY...

        nzcp-verify --example --offline NZCP:/1/2KCEVIQEIVVWK6JNGEASNICZAEP2KALY...
    """
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(message)s",
            handlers=[RichHandler(console=Console(stderr=True))],
        )

    uri = load_pass(source)
    if not uri:
        raise click.UsageError("No pass payload given")

    issuers: list[str] = list(trusted_issuers)
    documents: list[Any] = [load_did_document(path) for path in did_document_paths]
    if example:
        issuers.append(TRUSTED_ISSUERS.MOH_EXAMPLE)
        documents.append(DID_DOCUMENTS.MOH_EXAMPLE)

    verifier = PassVerifier(
        trusted_issuers=issuers or DEFAULT_TRUSTED_ISSUERS,
        did_documents=documents or DEFAULT_DID_DOCUMENTS,
        resolver=DIDResolver(timeout=timeout, verify_ssl=not no_ssl_verify),
    )

    if offline or did_document_paths:
        result = verifier.verify_offline(uri)
    else:
        result = asyncio.run(verifier.verify_online(uri))

    if json_output:
        console.print_json(data=result.to_dict())
    else:
        format_result(result)

    # Exit with appropriate code
    sys.exit(0 if result.success else 1)


if __name__ == "__main__":
    main()
