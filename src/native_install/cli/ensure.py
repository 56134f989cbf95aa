"""CLI error handling utilities with styled output.

All errors use a red "Error:" prefix and exit with status 1, the fatal exit
status of the installer.
"""

import click

from native_install.cli.output import user_output
from native_install.core.errors import InstallError


class Ensure:
    """Helper class for reporting errors with consistent styling."""

    @staticmethod
    def no_error(error: InstallError) -> None:
        """Report an installer error raised before execution and exit.

        Raises:
            SystemExit: Always (with exit code 1)
        """
        user_output(click.style("Error: ", fg="red") + str(error))
        raise SystemExit(1)
