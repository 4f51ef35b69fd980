"""CLI entrypoints for liquibase-secrets."""
import argparse
import logging
import os
import sys
from pathlib import Path

from ..secrets.domains.config_loader import default_config_path, load_config
from ..secrets.domains.errors import InvalidArguments, ResolverError
from ..secrets.domains.keyvault_client import KeyVaultSession
from ..secrets.domains.properties import (
    FORMAT_ENV,
    FORMAT_PROPERTIES,
    FORMATS,
    render,
    write_output_file,
)
from ..secrets.workflows.resolve_operations import resolve_secrets
from .validators import load_credentials, validate_environment, validate_vault_name

VERSION = "0.1.0"
EXIT_FAILURE = 1

logger = logging.getLogger(__name__)

RESOLVE_EPILOG = """
Exit codes:
  0 - Success
  1 - Any failure (invalid arguments, missing credentials, authentication,
      secret not found or empty). Nothing is printed or written on failure.

Environment variables:
  AZURE_CLIENT_ID     - Service principal application (client) ID
  AZURE_CLIENT_SECRET - Service principal client secret
  AZURE_TENANT_ID     - Microsoft Entra tenant ID

Secrets read from the vault:
  liquibase-license-key                -> liquibaseProLicenseKey / LIQUIBASE_LICENSE_KEY
  <environment>-liquibase-db-url       -> url / LIQUIBASE_COMMAND_URL
  <environment>-liquibase-db-username  -> username / LIQUIBASE_COMMAND_USERNAME
  <environment>-liquibase-db-password  -> password / LIQUIBASE_COMMAND_PASSWORD
  changelog-file                       -> changeLogFile / LIQUIBASE_COMMAND_CHANGELOG_FILE
"""


class _ArgumentParser(argparse.ArgumentParser):
    """ArgumentParser that reports usage errors as InvalidArguments."""

    def error(self, message):
        self.print_usage(sys.stderr)
        raise InvalidArguments(message)


def _configure_logging(verbosity: int) -> None:
    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity == 1:
        level = logging.INFO
    else:
        level = logging.WARNING

    logging.basicConfig(level=level, format="%(message)s", stream=sys.stderr)
    # Azure SDK HTTP logging is only useful when debugging
    logging.getLogger("azure").setLevel(logging.DEBUG if verbosity >= 3 else logging.WARNING)


def _add_resolve_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("vault_name", help="Azure Key Vault name (e.g. LiquibaseSCT)")
    parser.add_argument("environment", help="Environment identifier used in secret names (e.g. dev, prod)")
    parser.add_argument(
        "output_file",
        nargs="?",
        help="Write a key=value properties file here instead of printing NAME=value lines",
    )
    parser.add_argument(
        "--format",
        choices=FORMATS,
        help="Output format (default: env for stdout, properties for an output file)",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Log progress to stderr (-vv for debug output)",
    )


def cmd_resolve(args):
    """Resolve the Liquibase secrets and print or write them."""
    validate_vault_name(args.vault_name)
    validate_environment(args.environment)

    output_format = args.format or (FORMAT_PROPERTIES if args.output_file else FORMAT_ENV)

    credentials = load_credentials(os.environ)
    settings = load_config()

    resolved = resolve_secrets(
        credentials,
        args.vault_name,
        args.environment,
        settings=settings,
        session_factory=KeyVaultSession,
    )

    # Nothing is written until every value has rendered
    content = render(resolved, output_format)

    if args.output_file:
        target = write_output_file(content, args.output_file)
        print(f"Output written to: {target}", file=sys.stderr)
    else:
        sys.stdout.write(content)
        sys.stdout.flush()

    logger.info("All required secrets retrieved successfully")
    sys.exit(0)


def cmd_version(args):
    """Show version information."""
    print(f"liquibase-secrets {VERSION}")


def cmd_config_set_path(args):
    """Set config file path preference."""
    from ..secrets.domains.preferences import set_preference

    config_path = Path(args.path).resolve()

    if not config_path.exists():
        print(f"Error: Config file does not exist: {config_path}", file=sys.stderr)
        sys.exit(EXIT_FAILURE)

    if not config_path.is_file():
        print(f"Error: Path is not a file: {config_path}", file=sys.stderr)
        sys.exit(EXIT_FAILURE)

    # Reject files that would fail on the next resolve
    load_config(str(config_path))

    set_preference("config_path", str(config_path))
    print(f"Config path set to: {config_path}")


def cmd_config_show(args):
    """Show current config file path."""
    from ..secrets.domains.preferences import get_preference

    config_path_pref = get_preference("config_path")

    if config_path_pref:
        config_path = Path(config_path_pref)
        if config_path.exists():
            print(f"Config path: {config_path}")
        else:
            print(f"Config path (from preference, but file not found): {config_path}")
        print("Source: preference")
    else:
        default_config = default_config_path()
        print(f"Config path: {default_config}")
        if default_config.exists():
            print("Source: default")
        else:
            print("Source: default (file not found, built-in settings apply)")


def cmd_config_clear(args):
    """Clear config path preference."""
    from ..secrets.domains.preferences import clear_preference

    clear_preference("config_path")
    print(f"Config path preference cleared. Will use default: {default_config_path()}")


def _run(handler, args):
    try:
        handler(args)
    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        sys.exit(EXIT_FAILURE)
    except ResolverError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(EXIT_FAILURE)
    except Exception as e:
        # The message of an arbitrary exception may quote secret content
        print(f"Error: unexpected {type(e).__name__}", file=sys.stderr)
        sys.exit(EXIT_FAILURE)


def _parse(parser, argv):
    try:
        return parser.parse_args(argv)
    except InvalidArguments as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(EXIT_FAILURE)


def resolve_main(argv=None):
    """Entrypoint for ``resolve-secrets <vault-name> <environment> [output-file]``."""
    parser = _ArgumentParser(
        prog="resolve-secrets",
        description="Resolve Liquibase credentials and license key from Azure Key Vault",
        epilog=RESOLVE_EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    _add_resolve_arguments(parser)

    args = _parse(parser, argv)
    _configure_logging(args.verbose)
    _run(cmd_resolve, args)


def main(argv=None):
    """Main CLI entrypoint.

    Exit codes:
        0 - Success
        1 - Any error (usage, credentials, authentication, secret lookup, config)
    """
    parser = _ArgumentParser(
        prog="liquibase-secrets",
        description="liquibase-secrets CLI - Azure Key Vault to Liquibase configuration",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Configuration:
  Default location: ~/.config/liquibase-secrets/config.yml (optional)
  Custom path: Set with 'liquibase-secrets config set-path <path>'
  View current: Run 'liquibase-secrets config show'
        """
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser(
        "version",
        help="Show version information",
        description="Display the current version of liquibase-secrets"
    )

    resolve_parser = subparsers.add_parser(
        "resolve",
        help="Resolve Liquibase secrets from Key Vault",
        description="Resolve Liquibase credentials and license key from Azure Key Vault",
        epilog=RESOLVE_EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    _add_resolve_arguments(resolve_parser)

    config_parser = subparsers.add_parser(
        "config",
        help="Configuration management",
        description="Manage liquibase-secrets configuration"
    )
    config_subparsers = config_parser.add_subparsers(dest="config_command")

    config_set_path_parser = config_subparsers.add_parser(
        "set-path",
        help="Set config file path",
        description="""
Set the configuration file path preference.

This stores the absolute path to your config file in:
~/.config/liquibase-secrets/preferences.json

The file is validated before the path is stored.
        """
    )
    config_set_path_parser.add_argument("path", help="Path to config file")

    config_subparsers.add_parser(
        "show",
        help="Show current config path",
        description="Display the current configuration file path and its source"
    )
    config_subparsers.add_parser(
        "clear",
        help="Clear config path preference",
        description="Remove the config path preference and fall back to the default location"
    )

    args = _parse(parser, argv)

    if not args.command:
        parser.print_help()
        sys.exit(EXIT_FAILURE)

    if args.command == "version":
        _run(cmd_version, args)
    elif args.command == "resolve":
        _configure_logging(args.verbose)
        _run(cmd_resolve, args)
    elif args.command == "config":
        _configure_logging(0)
        if args.config_command == "set-path":
            _run(cmd_config_set_path, args)
        elif args.config_command == "show":
            _run(cmd_config_show, args)
        elif args.config_command == "clear":
            _run(cmd_config_clear, args)
        else:
            config_parser.print_help()
            sys.exit(EXIT_FAILURE)


if __name__ == "__main__":
    main()
