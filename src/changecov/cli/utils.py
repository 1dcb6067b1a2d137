"""CLI utilities."""

from pathlib import Path

import click

from changecov.config.loader import load_config
from changecov.config.models import ChangecovConfig
from changecov.core.errors import ConfigError
from changecov.core.logging import configure_logging


def find_project_root(start_path: Path | None = None) -> Path:
    """Find the git repository root from the given path.

    Walks up the directory tree looking for a .git directory. Falls back to
    the start path itself when none is found, so coverage can still be
    computed (without a diff) outside a repository.
    """
    if start_path is None:
        start_path = Path.cwd()

    current = start_path.resolve()
    while current != current.parent:
        if (current / ".git").exists():
            return current
        current = current.parent
    if (current / ".git").exists():
        return current
    return start_path.resolve()


def load_settings(ctx: click.Context) -> tuple[Path, ChangecovConfig]:
    """Resolve the project root, load its config and apply its logging settings.

    Raises:
        click.ClickException: On invalid configuration.
    """
    obj = ctx.ensure_object(dict)
    root = find_project_root(obj.get("root"))
    try:
        config = load_config(root)
    except ConfigError as e:
        raise click.ClickException(str(e)) from e

    if obj.get("verbose"):
        config.logging.level = "DEBUG"
    configure_logging(config=config.logging)
    return root, config
