"""Command-line interface for ormsync.

This module provides the CLI commands for building, validating and
maintaining the tables of configured objects.
"""

from typing import NoReturn

import click

from ormsync import __version__
from ormsync.application.services.builder import Builder, BuilderFactory
from ormsync.core.config import Settings, get_settings
from ormsync.core.exceptions import OrmSyncError
from ormsync.core.logging import configure_logging, get_logger
from ormsync.domain.entities.schema_change import SchemaDiff
from ormsync.infrastructure.persistence.database import DatabaseManager


def _create_factory(settings: Settings) -> tuple[BuilderFactory, DatabaseManager]:
    """Wire a BuilderFactory for the configured database."""
    manager = DatabaseManager(settings)
    return BuilderFactory.from_settings(settings, manager), manager


def _fail(errors: list[str], message: str) -> NoReturn:
    for error in errors:
        click.echo(f"  {error}", err=True)
    click.echo(f"Error: {message}", err=True)
    raise SystemExit(1)


def _run(name: str | None, action) -> None:
    """Load the factory (and builder) and run ``action`` with it.

    Setup failures such as missing configurations or an unsupported
    database are reported and end the command with status 1.
    """
    settings = get_settings()
    configure_logging(settings)

    manager = None
    try:
        factory, manager = _create_factory(settings)
        if not manager.check_connection():
            _fail([], f"Cannot connect to database {settings.database_url}")
        target = factory.create(name) if name is not None else factory
        action(target)
    except OrmSyncError as e:
        _fail([], str(e))
    finally:
        if manager is not None:
            manager.dispose()


def _format_diff(diff: SchemaDiff) -> list[str]:
    if not diff.table_exists:
        lines = ["table does not exist"]
    else:
        lines = []
        for change in diff.columns:
            failed = ", ".join(name for name, flag in change.detail.items() if flag)
            lines.append(f"column {change.action.value} {change.name}" + (f" ({failed})" if failed else ""))
        for change in diff.indexes:
            lines.append(f"index {change.action.value} {change.name}")
        for change in diff.foreign_keys:
            lines.append(f"foreign key {change.action.value} {change.name}")
        if diff.engine is not None:
            lines.append(f"engine {diff.engine.current} -> {diff.engine.target}")
    for relation in diff.missing_relations:
        lines.append(f"relation object missing {relation}")
    for relation in diff.unbuilt_relations:
        lines.append(f"relation table missing {relation}")
    return lines


@click.group()
@click.version_option(version=__version__, prog_name="ormsync")
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]),
    default=None,
    help="Set log level (overrides ORMSYNC_LOG_LEVEL)",
)
def cli(log_level: str | None) -> None:
    """ormsync - keep database tables in line with object configurations."""
    if log_level is not None:
        settings = get_settings()
        settings.log_level = log_level


@cli.command()
@click.argument("name")
@click.option(
    "--no-keys",
    is_flag=True,
    default=False,
    help="Skip foreign key reconciliation",
)
def build(name: str, no_keys: bool) -> None:
    """Create or alter the table of object NAME."""

    def action(builder: Builder) -> None:
        result = builder.build(build_keys=not no_keys)
        for sql in result.statements:
            click.echo(sql + ";")
        if not result:
            _fail(result.errors, f"build of {name} failed")
        click.echo(f"{name}: ok")

    _run(name, action)


@cli.command("build-all")
def build_all() -> None:
    """Build every configured object, then reconcile foreign keys.

    Tables are built first so that every key target exists when the
    keys are added.
    """
    logger = get_logger(__name__)

    def action(factory: BuilderFactory) -> None:
        names = factory.store.names()
        errors: list[str] = []

        builders = []
        for name in names:
            builder = factory.create(name)
            if builder.config.is_locked():
                logger.info("Skipping locked object", object_name=name)
                continue
            result = builder.build(build_keys=False)
            if not result:
                errors.extend(f"{name}: {error}" for error in result.errors)
            builders.append(builder)

        for builder in builders:
            if not builder.build_foreign_keys():
                errors.extend(f"{builder.object_name}: {error}" for error in builder.errors)

        if errors:
            _fail(errors, "build-all finished with errors")
        click.echo(f"{len(builders)} objects built")

    _run(None, action)


@cli.command()
@click.argument("name")
def validate(name: str) -> None:
    """Check that the table of object NAME matches its configuration."""

    def action(builder: Builder) -> None:
        if not builder.validate():
            _fail(builder.errors, f"{name} needs to be rebuilt")
        click.echo(f"{name}: valid")

    _run(name, action)


@cli.command()
@click.argument("name")
def diff(name: str) -> None:
    """Show the changes a build of object NAME would apply."""

    def action(builder: Builder) -> None:
        changes = builder.pending_changes()
        if changes.is_empty and changes.table_exists:
            click.echo(f"{name}: no changes")
            return
        for line in _format_diff(changes):
            click.echo(line)

    _run(name, action)


@cli.command()
@click.argument("name")
@click.option(
    "--force",
    is_flag=True,
    help="Skip confirmation prompt",
)
def remove(name: str, force: bool) -> None:
    """Drop the table of object NAME."""
    if not force:
        click.confirm(f"This will drop the table of {name}. Continue?", abort=True, default=False)

    def action(builder: Builder) -> None:
        if not builder.remove():
            _fail(builder.errors, f"cannot remove {name}")
        click.echo(f"{name}: table removed")

    _run(name, action)


@cli.command("rename-table")
@click.argument("name")
@click.argument("new_table")
def rename_table(name: str, new_table: str) -> None:
    """Rename the table of object NAME and update its configuration."""

    def action(builder: Builder) -> None:
        if not builder.rename_table(new_table):
            _fail(builder.errors, f"cannot rename table of {name}")
        if not builder.store.save(builder.config):
            _fail([], f"table renamed but configuration of {name} was not saved")
        click.echo(f"{name}: table renamed to {builder.table}")

    _run(name, action)


@cli.command("rename-field")
@click.argument("name")
@click.argument("old_field")
@click.argument("new_field")
def rename_field(name: str, old_field: str, new_field: str) -> None:
    """Rename column OLD_FIELD of object NAME to the configured NEW_FIELD."""

    def action(builder: Builder) -> None:
        if not builder.rename_field(old_field, new_field):
            _fail(builder.errors, f"cannot rename {name}.{old_field}")
        click.echo(f"{name}: {old_field} renamed to {new_field}")

    _run(name, action)


@cli.command("broken-links")
@click.argument("name")
def broken_links(name: str) -> None:
    """List link fields of object NAME that point to missing objects."""

    def action(builder: Builder) -> None:
        broken = builder.has_broken_links()
        if not broken:
            click.echo(f"{name}: no broken links")
            return
        for field_name, target in broken.items():
            click.echo(f"{field_name} -> {target}")
        raise SystemExit(1)

    _run(name, action)


@cli.command()
def info() -> None:
    """Display ormsync configuration."""
    settings = get_settings()

    click.echo(f"""
ormsync v{settings.app_version}
{'=' * 40}

Configuration:
  Environment:  {settings.environment}
  Objects:      {settings.object_config_path}

Database:
  URL:          {settings.database_url}
  Prefix:       {settings.db_prefix or '(none)'}
  Pool Size:    {settings.db_pool_size}

Builder:
  Foreign Keys: {settings.foreign_keys}
  SQL Log:      {settings.sql_log_enabled}
  Log Path:     {settings.sql_log_path}
  Log Prefix:   {settings.sql_log_prefix}

Logging:
  Level:        {settings.log_level}
  Format:       {settings.log_format}
""")


def main() -> NoReturn:
    """Main entry point for the CLI.

    This function is called when the `ormsync` command is run
    or when using `python -m ormsync`.
    """
    cli()


if __name__ == "__main__":
    main()
