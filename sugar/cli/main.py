"""CLI entry point for Sugar."""

from __future__ import annotations

import os
import sys
from collections.abc import Callable
from typing import Any

import fire

from sugar.cli.parsing import normalize_argv
from sugar.constants import ENV_DEBUG, EXIT_CONFIG_ERROR, EXIT_NO_FILTER
from sugar.core.errors import SugarError
from sugar.logging import configure_logging
from sugar.providers import ProviderAPIError, ProviderCredentialsError
from sugar.providers.aws.utils import get_aws_credentials_error_message
from sugar.utils import log_and_print_error

USAGE = """\
usage: sugar [ssh] <filter>[@profile] [-k KEY] [-i IDENTITY] [-u USER] [-v] [-o] [-n]
       sugar forward <filter>[@profile] <port> [options]
       sugar dns <filter>[@profile]
       sugar list [filter][@profile]"""

EXIT_INTERRUPTED = 130


def get_sugar_base_class() -> type:
    """Get Sugar base class on-demand to avoid circular imports.

    Returns
    -------
    type
        Sugar base class
    """
    from sugar.__main__ import Sugar

    return Sugar


class SugarCLI:
    """CLI wrapper that turns ssh exit statuses into process exit codes.

    Fire prints whatever a command returns, so the connecting commands exit
    with the ssh status instead of returning it.

    Parameters
    ----------
    **kwargs : Any
        Collaborators forwarded to :class:`sugar.__main__.Sugar`
    """

    _cached_class: type | None = None

    def __new__(cls, **kwargs: Any) -> Any:
        """Create SugarCLI instance with dynamic subclassing.

        Returns
        -------
        Any
            Instance of dynamically created SugarCLI subclass
        """
        if cls._cached_class is None:
            Sugar = get_sugar_base_class()

            class SugarCLIImpl(Sugar):
                """CLI wrapper implementation for Sugar."""

                def ssh(
                    self,
                    filter: str | None = None,
                    key: str | None = None,
                    identity: str | None = None,
                    user: str | None = None,
                    verbose: bool = False,
                    opts: bool = False,
                    interactive: bool = False,
                ) -> None:
                    """Connect to a matching instance via ssh.

                    Parameters
                    ----------
                    filter : str | None
                        Instance filter, ``name[@profile]``
                    key : str | None
                        Key name for the instance
                    identity : str | None
                        Force path to key file
                    user : str | None
                        Log in as this user
                    verbose : bool
                        Display debug output
                    opts : bool
                        Just print the ssh options that would have been used
                    interactive : bool
                        Prompt to select a specific instance if more than one matches
                    """
                    sys.exit(
                        super().ssh(
                            filter=filter,
                            key=key,
                            identity=identity,
                            user=user,
                            verbose=verbose,
                            opts=opts,
                            interactive=interactive,
                        )
                    )

                def forward(
                    self,
                    filter: str | None = None,
                    port: int | str | None = None,
                    key: str | None = None,
                    identity: str | None = None,
                    user: str | None = None,
                    verbose: bool = False,
                    opts: bool = False,
                    interactive: bool = False,
                ) -> None:
                    """Forward a local port to the same port on a matching instance.

                    Parameters
                    ----------
                    filter : str | None
                        Instance filter, ``name[@profile]``
                    port : int | str | None
                        Port to forward
                    key : str | None
                        Key name for the instance
                    identity : str | None
                        Force path to key file
                    user : str | None
                        Log in as this user
                    verbose : bool
                        Display debug output
                    opts : bool
                        Just print the ssh options that would have been used
                    interactive : bool
                        Prompt to select a specific instance if more than one matches
                    """
                    sys.exit(
                        super().forward(
                            filter=filter,
                            port=port,
                            key=key,
                            identity=identity,
                            user=user,
                            verbose=verbose,
                            opts=opts,
                            interactive=interactive,
                        )
                    )

            cls._cached_class = SugarCLIImpl

        return cls._cached_class(**kwargs)


def handle_sugar_error(error: SugarError, debug_mode: bool) -> None:
    """Report a fatal pipeline error and exit with its code.

    Parameters
    ----------
    error : SugarError
        The error that ended the command
    debug_mode : bool
        Whether debug mode is enabled

    Raises
    ------
    SugarError
        Re-raised if debug mode is enabled
    """
    if debug_mode:
        raise

    log_and_print_error("%s", error)
    sys.exit(error.exit_code)


def handle_credentials_error(debug_mode: bool) -> None:
    """Handle provider credentials error.

    Raises
    ------
    ProviderCredentialsError
        Re-raised if debug mode is enabled
    """
    if debug_mode:
        raise

    print(get_aws_credentials_error_message(), file=sys.stderr)
    sys.exit(EXIT_CONFIG_ERROR)


def handle_value_error(error: ValueError, debug_mode: bool) -> None:
    """Handle an invalid command line value.

    Raises
    ------
    ValueError
        Re-raised if debug mode is enabled
    """
    if debug_mode:
        raise

    print(f"sugar: {error}", file=sys.stderr)
    sys.exit(1)


def handle_api_error(error: ProviderAPIError, debug_mode: bool) -> None:
    """Handle provider API error with context-specific messages.

    Raises
    ------
    ProviderAPIError
        Re-raised if debug mode is enabled
    """
    if debug_mode:
        raise

    if error.error_code == "UnauthorizedOperation":
        print("Insufficient IAM permissions\n", file=sys.stderr)
        print("Contact your cloud administrator to grant:", file=sys.stderr)
        print("  - ec2:DescribeInstances", file=sys.stderr)
        print("  - ec2:GetConsoleOutput", file=sys.stderr)
        print("  - ec2:CreateTags", file=sys.stderr)
    else:
        print(f"Cloud API error: {error}", file=sys.stderr)

    sys.exit(1)


def handle_runtime_error(error: RuntimeError, debug_mode: bool) -> None:
    """Handle unexpected runtime error.

    Raises
    ------
    RuntimeError
        Re-raised if debug mode is enabled
    """
    if debug_mode:
        raise

    print(f"Unexpected error: {error}", file=sys.stderr)
    sys.exit(1)


def main(
    argv: list[str] | None = None,
    cli_factory: Callable[[], Any] | None = None,
) -> None:
    """Entry point for Fire CLI with graceful error handling.

    Parameters
    ----------
    argv : list[str] | None
        Arguments without the program name (default: ``sys.argv[1:]``)
    cli_factory : Callable[[], Any] | None
        Builds the command object handed to Fire (default: :class:`SugarCLI`)

    Notes
    -----
    Fire maps the command object's public methods to subcommands. Short
    flags and the implicit ``ssh`` command are handled by
    :func:`sugar.cli.parsing.normalize_argv` first.
    """
    args = normalize_argv(sys.argv[1:] if argv is None else list(argv))

    if not args:
        print(USAGE, file=sys.stderr)
        sys.exit(EXIT_NO_FILTER)

    configure_logging(verbose="--verbose=True" in args)

    debug_mode = os.environ.get(ENV_DEBUG) == "1"

    try:
        fire.Fire((cli_factory or SugarCLI)(), command=args, name="sugar")
    except SugarError as e:
        handle_sugar_error(e, debug_mode)
    except ProviderCredentialsError:
        handle_credentials_error(debug_mode)
    except ProviderAPIError as e:
        handle_api_error(e, debug_mode)
    except ValueError as e:
        handle_value_error(e, debug_mode)
    except RuntimeError as e:
        handle_runtime_error(e, debug_mode)
    except (KeyboardInterrupt, EOFError):
        if debug_mode:
            raise
        print("", file=sys.stderr)
        sys.exit(EXIT_INTERRUPTED)
