"""CLI entry point for credledger.

Deploys a registry, serves the REST API and runs read-only queries
against a registry database.
"""

from __future__ import annotations

import sys
from dataclasses import dataclass
from pathlib import Path

import click

from credledger.config import ConfigError, CredLedgerConfig, resolve_config
from credledger.logging import get_logger, setup_logging
from credledger.registry import CredentialRegistry, RegistryError
from credledger.registry.database import Database


@dataclass
class CLIContext:
    """Settings shared by all commands."""

    config: CredLedgerConfig
    db_path: str
    verbose: bool


def _open_registry(ctx: CLIContext, owner: str | None = None) -> CredentialRegistry:
    # Read-only commands must not leave an empty database behind
    if owner is None and not Database(ctx.db_path).exists:
        click.echo(f"Registry error: no registry database at '{ctx.db_path}'", err=True)
        click.echo("  Run 'credledger init --owner <identity>' first.", err=True)
        sys.exit(1)
    try:
        return CredentialRegistry(ctx.db_path, owner=owner)
    except RegistryError as e:
        click.echo(f"Registry error: {e}", err=True)
        if owner is None:
            click.echo("  Run 'credledger init --owner <identity>' first.", err=True)
        sys.exit(1)


def _format_timestamp(value: object) -> str:
    return "-" if value is None else str(value)


@click.group()
@click.version_option(package_name="credledger")
@click.option(
    "-c",
    "--config",
    "config_path",
    type=click.Path(exists=True, path_type=Path),
    help="Path to credledger.yaml (auto-detected if not specified)",
)
@click.option(
    "--db",
    "db_path",
    type=str,
    default=None,
    help="Registry database path (overrides config)",
)
@click.option(
    "-v",
    "--verbose",
    is_flag=True,
    help="Enable verbose output",
)
@click.pass_context
def main(ctx: click.Context, config_path: Path | None, db_path: str | None, verbose: bool) -> None:
    """credledger - credential registry for courses and certificates."""
    try:
        config = resolve_config(config_path)
    except ConfigError as e:
        click.echo(f"Configuration error: {e}", err=True)
        sys.exit(1)

    ctx.obj = CLIContext(
        config=config,
        db_path=db_path if db_path is not None else config.get_db_path(),
        verbose=verbose,
    )


@main.command()
@click.option("--owner", type=str, default=None, help="Owner identity (default: from config)")
@click.pass_obj
def init(ctx: CLIContext, owner: str | None) -> None:
    """Deploy a registry database with its owner."""
    owner = owner if owner is not None else ctx.config.owner
    if not owner:
        click.echo("Error: an owner identity is required (--owner or config 'owner').", err=True)
        sys.exit(1)

    registry = _open_registry(ctx, owner=owner)
    try:
        stats = registry.get_contract_stats()
    finally:
        registry.close()

    click.echo(f"Registry ready at {ctx.db_path}")
    click.echo(f"  Owner: {stats.owner}")
    click.echo(f"  Courses: {stats.total_courses}")
    click.echo(f"  Students: {stats.total_students}")


@main.command()
@click.option("--host", type=str, default=None, help="Bind address (default: from config)")
@click.option("--port", type=int, default=None, help="Port (default: from config)")
@click.pass_obj
def serve(ctx: CLIContext, host: str | None, port: int | None) -> None:
    """Serve the REST API."""
    import uvicorn  # noqa: PLC0415

    from credledger.api import create_app  # noqa: PLC0415

    config = ctx.config
    setup_logging(
        log_dir=config.get_log_dir(),
        level="DEBUG" if ctx.verbose else config.logging.level,
        console=config.logging.console,
    )
    host = host or config.api.host
    port = port or config.api.port
    get_logger("cli").info("Serving credledger API on %s:%d (db=%s)", host, port, ctx.db_path)
    app = create_app(db_path=ctx.db_path, owner=config.owner)
    uvicorn.run(
        app,
        host=host,
        port=port,
        log_level="debug" if ctx.verbose else "info",
    )


@main.command()
@click.pass_obj
def stats(ctx: CLIContext) -> None:
    """Show registry statistics."""
    registry = _open_registry(ctx)
    try:
        result = registry.get_contract_stats()
    finally:
        registry.close()

    click.echo(f"Owner: {result.owner}")
    click.echo(f"Courses: {result.total_courses}")
    click.echo(f"Students: {result.total_students}")


@main.command()
@click.argument("course_id", type=int)
@click.pass_obj
def course(ctx: CLIContext, course_id: int) -> None:
    """Show a course."""
    registry = _open_registry(ctx)
    try:
        details = registry.get_course_details(course_id)
    finally:
        registry.close()

    if not details.exists:
        click.echo(f"Course {course_id} not found", err=True)
        sys.exit(1)

    click.echo(f"Course {details.course_id}: {details.title}")
    click.echo(f"  {details.description}")
    click.echo(f"  Instructor: {details.instructor}")
    click.echo(f"  Price: {details.price}")
    click.echo(f"  Duration: {details.duration} days")
    click.echo(f"  Status: {'active' if details.is_active else 'inactive'}")
    click.echo(f"  Enrolled: {details.enrolled_students}")


@main.command()
@click.argument("identity", type=str)
@click.pass_obj
def student(ctx: CLIContext, identity: str) -> None:
    """Show a student's courses and credits."""
    registry = _open_registry(ctx)
    try:
        record = registry.get_student(identity)
    finally:
        registry.close()

    if not record.is_registered:
        click.echo(f"Student '{identity}' is not registered", err=True)
        sys.exit(1)

    click.echo(f"Student {record.identity}: {record.name}")
    click.echo(f"  Registered: {_format_timestamp(record.registered_at)}")
    click.echo(f"  Enrolled: {', '.join(map(str, record.enrolled_courses)) or '-'}")
    click.echo(f"  Completed: {', '.join(map(str, record.completed_courses)) or '-'}")
    click.echo(f"  Credits: {record.total_credits}")


@main.command()
@click.argument("certificate_id", type=str)
@click.pass_obj
def verify(ctx: CLIContext, certificate_id: str) -> None:
    """Verify a certificate. Exits 1 if it was never issued or is not valid."""
    registry = _open_registry(ctx)
    try:
        result = registry.verify_certificate(certificate_id)
    finally:
        registry.close()

    if not result.exists:
        click.echo(f"Certificate {certificate_id} not found", err=True)
        sys.exit(1)

    click.echo(f"Certificate {result.certificate_id}")
    click.echo(f"  Valid: {'yes' if result.is_valid else 'no'}")
    click.echo(f"  Course: {result.course_id}")
    click.echo(f"  Student: {result.student}")
    click.echo(f"  Instructor: {result.instructor}")
    click.echo(f"  Issued: {_format_timestamp(result.issued_at)}")
    click.echo(f"  Content hash: {result.content_hash}")
    if not result.is_valid:
        sys.exit(1)


if __name__ == "__main__":
    main()
