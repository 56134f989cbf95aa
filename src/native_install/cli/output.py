"""Output helpers for CLI code with clear intent."""

from typing import Any

import click


def user_output(message: Any = "", nl: bool = True) -> None:
    """Write a user-facing message to stderr.

    Progress, warnings and errors all go to stderr so that stdout stays free
    for tools that wrap the installer.
    """
    click.echo(message, err=True, nl=nl)
