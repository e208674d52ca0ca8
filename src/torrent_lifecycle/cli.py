#!/usr/bin/env python3
"""
torrent-lifecycle CLI

Runs one command (clean or relabel) against one configured client.
"""

import sys
from typing import List, Optional

from torrent_lifecycle import runner
from torrent_lifecycle.arguments import create_parser, handle_validate, process_args
from torrent_lifecycle.clients import create_client
from torrent_lifecycle.config import load_config
from torrent_lifecycle.errors import handle_errors
from torrent_lifecycle.logging import get_logger, setup_logging


@handle_errors
def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point"""
    parser = create_parser()
    args = parser.parse_args(argv)

    config_dir = process_args(args)
    config = load_config(config_dir)
    setup_logging(config, config.get_trace_mode())
    logger = get_logger(__name__)

    if handle_validate(args, config):
        return 0

    settings = config.get_client_config(args.client)
    rule_set = config.get_rule_set(args.client)
    client = create_client(args.client, settings, rule_set)

    client.connect()
    logger.info(f"Connected to {client.type} client '{client.name}'")

    dry_run = config.is_dry_run()
    if args.command == 'clean':
        stats = runner.clean(
            client,
            dry_run=dry_run,
            delete_data=not args.keep_data,
            free_space_path=settings.get('free_space_path')
        )
    else:
        stats = runner.relabel(client, dry_run=dry_run)

    return 1 if stats.failed else 0


if __name__ == '__main__':
    sys.exit(main())
