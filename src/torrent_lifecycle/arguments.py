"""
Argument parsing for the torrent-lifecycle command
"""

import os
import argparse
from pathlib import Path

from torrent_lifecycle.__version__ import __version__, __description__
from torrent_lifecycle.config import ENV_VAR_MAP
from torrent_lifecycle.logging import get_logger

COMMANDS = ('clean', 'relabel')


def smart_config_default() -> str:
    """
    Determine smart default for config directory

    Returns ./config if it exists (bare metal), otherwise /config (Docker)
    """
    local_config = Path('./config')
    if local_config.exists() and local_config.is_dir():
        return './config'
    return '/config'


def create_parser() -> argparse.ArgumentParser:
    """
    Create argument parser

    Returns:
        Configured ArgumentParser
    """
    parser = argparse.ArgumentParser(
        prog='torrent-lifecycle',
        description=__description__,
        formatter_class=argparse.RawDescriptionHelpFormatter
    )

    parser.add_argument(
        'command',
        choices=COMMANDS,
        help='clean: remove torrents matching remove rules; relabel: apply label rules'
    )

    parser.add_argument(
        'client',
        help='Name of the client block in config.yml'
    )

    parser.add_argument(
        '--config-dir',
        type=Path,
        default=None,
        help=f'Path to configuration directory (default: {smart_config_default()} or '
             f'{ENV_VAR_MAP["config.dir"]} env var)'
    )

    parser.add_argument(
        '--dry-run',
        action='store_true',
        help='Log decisions without changing anything in the client'
    )

    parser.add_argument(
        '--keep-data',
        action='store_true',
        help='clean: remove torrents from the client but keep their files'
    )

    parser.add_argument(
        '--log-level',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
        help='Set logging verbosity (default: from config or INFO)'
    )

    parser.add_argument(
        '--trace',
        action='store_true',
        help='Enable trace mode with detailed logging (module/function/line)'
    )

    parser.add_argument(
        '--validate',
        action='store_true',
        help='Validate the client configuration and its rules without running'
    )

    parser.add_argument(
        '--version',
        action='version',
        version=f'torrent-lifecycle v{__version__}'
    )

    parser.epilog = '''
Examples:
  # Remove torrents matching the remove rules of client "home"
  torrent-lifecycle clean home

  # See what would be relabeled
  torrent-lifecycle relabel home --dry-run

  # Check config.yml and the rules used by "home"
  torrent-lifecycle clean home --validate
    '''

    return parser


def process_args(args: argparse.Namespace) -> Path:
    """
    Process parsed arguments and set environment variables

    Args:
        args: Parsed arguments from argparse

    Returns:
        Path to configuration directory
    """
    if args.dry_run:
        os.environ[ENV_VAR_MAP['engine.dry_run']] = 'true'

    if args.log_level:
        os.environ[ENV_VAR_MAP['logging.level']] = args.log_level

    if args.trace:
        os.environ[ENV_VAR_MAP['logging.trace_mode']] = 'true'

    if args.config_dir:
        return args.config_dir
    if ENV_VAR_MAP['config.dir'] in os.environ:
        return Path(os.environ[ENV_VAR_MAP['config.dir']])
    return Path(smart_config_default())


def handle_validate(args: argparse.Namespace, config) -> bool:
    """
    Validate one client's settings and compile its rules

    Returns:
        True if --validate was given (caller should exit)

    Raises:
        ConfigurationError, FieldError, OperatorError: If validation fails
    """
    if not args.validate:
        return False

    logger = get_logger(__name__)
    logger.info(f"Validating client '{args.client}'...")

    settings = config.get_client_config(args.client)
    logger.info(f"✓ {settings['type']} client configured: {settings.get('host')}")

    rule_set = config.get_rule_set(args.client)
    logger.info(
        f"✓ Rules compiled: {len(rule_set.ignores)} ignore, {len(rule_set.removes)} remove, "
        f"{len(rule_set.labels)} label"
    )
    for label in rule_set.labels:
        logger.info(f"  ✓ label '{label.name}' ({len(label.updates)} condition(s))")

    logger.info("Validation complete! Configuration is valid.")
    return True
