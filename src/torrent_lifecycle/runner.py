"""
Run commands: clean and relabel

Both walk one client's torrents sequentially. A torrent whose rules fail to
evaluate, or whose removal/relabel fails, is logged and skipped; the run
carries on with the next torrent.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional

from torrent_lifecycle.clients.base import Client
from torrent_lifecycle.errors import (
    LabelError,
    PredicateEvalError,
    RemovalStepError,
)
from torrent_lifecycle.logging import get_logger
from torrent_lifecycle.models import Torrent
from torrent_lifecycle.utils import format_bytes, format_duration, truncate_name

logger = get_logger(__name__)


@dataclass
class RunStats:
    """Counters for one run against one client"""
    total: int = 0
    ignored: int = 0
    removed: int = 0
    relabeled: int = 0
    failed: int = 0
    skipped: int = 0
    freed_bytes: int = 0

    def summary(self) -> str:
        return (
            f"total={self.total} ignored={self.ignored} removed={self.removed} "
            f"relabeled={self.relabeled} failed={self.failed} skipped={self.skipped} "
            f"freed={format_bytes(self.freed_bytes)}"
        )


def ordered(torrents: Dict[str, Torrent]) -> List[Torrent]:
    """Oldest torrents first, ties broken by hash"""
    return sorted(torrents.values(), key=lambda t: (-t.added_seconds, t.hash))


def clean(client: Client, dry_run: bool = False, delete_data: bool = True,
          free_space_path: Optional[str] = None) -> RunStats:
    """
    Remove torrents matching the client's remove rules

    Args:
        client: Connected client
        dry_run: Log decisions without touching the client
        delete_data: Delete downloaded files along with the torrent
        free_space_path: Establish the free space baseline at this path first

    Returns:
        RunStats for the run

    Raises:
        DiskQueryError: If free_space_path cannot be queried
        FetchError: If torrents cannot be retrieved
    """
    stats = RunStats()

    if free_space_path:
        client.get_current_free_space(free_space_path)

    torrents = client.get_torrents()
    stats.total = len(torrents)
    logger.info(f"[{client.name}] Checking {stats.total} torrents for removal" + (" (dry run)" if dry_run else ""))

    for torrent in ordered(torrents):
        name = truncate_name(torrent.name)

        try:
            if client.should_ignore(torrent):
                stats.ignored += 1
                logger.debug(f"Ignoring: {name}")
                continue

            if not client.should_remove(torrent):
                stats.skipped += 1
                continue
        except PredicateEvalError as e:
            stats.failed += 1
            logger.error(f"Skipping {name}: rules could not be evaluated\n{e}")
            logger.debug(f"Fields of {torrent.hash}: {torrent.as_dict()}")
            continue

        logger.info(
            f"→ remove: {name} (ratio={torrent.ratio:.2f}, "
            f"seeding={format_duration(torrent.seeding_seconds)}, label={torrent.label or '-'}, "
            f"tracker={torrent.tracker_name or '-'})"
        )

        if dry_run:
            logger.info(f"[DRY RUN] Would remove {torrent.hash} (delete_data={delete_data})")
        else:
            try:
                client.remove_torrent(torrent.hash, delete_data)
            except RemovalStepError as e:
                stats.failed += 1
                logger.error(f"Failed removing {name}\n{e}")
                continue

        stats.removed += 1

        if delete_data:
            stats.freed_bytes += torrent.downloaded_bytes
            if torrent.free_space_set:
                client.add_free_space(torrent.downloaded_bytes)
                logger.debug(f"Estimated free space: {client.get_free_space():.2f} GB")

    logger.info(f"[{client.name}] Clean finished: {stats.summary()}")
    return stats


def relabel(client: Client, dry_run: bool = False) -> RunStats:
    """
    Apply the first matching label rule to each torrent

    Args:
        client: Connected client
        dry_run: Log decisions without touching the client

    Returns:
        RunStats for the run

    Raises:
        FetchError: If torrents cannot be retrieved
    """
    stats = RunStats()

    torrents = client.get_torrents()
    stats.total = len(torrents)
    logger.info(f"[{client.name}] Checking {stats.total} torrents for relabel" + (" (dry run)" if dry_run else ""))

    for torrent in ordered(torrents):
        name = truncate_name(torrent.name)

        try:
            if client.should_ignore(torrent):
                stats.ignored += 1
                logger.debug(f"Ignoring: {name}")
                continue

            label, matched = client.should_relabel(torrent)
        except PredicateEvalError as e:
            stats.failed += 1
            logger.error(f"Skipping {name}: rules could not be evaluated\n{e}")
            logger.debug(f"Fields of {torrent.hash}: {torrent.as_dict()}")
            continue

        if not matched or label == torrent.label:
            stats.skipped += 1
            continue

        logger.info(f"→ relabel: {name} ({torrent.label or '-'} → {label})")

        if dry_run:
            logger.info(f"[DRY RUN] Would set label of {torrent.hash} to {label}")
        else:
            try:
                client.set_torrent_label(torrent.hash, label)
            except LabelError as e:
                stats.failed += 1
                logger.error(f"Failed relabeling {name}\n{e}")
                continue

        stats.relabeled += 1

    logger.info(f"[{client.name}] Relabel finished: {stats.summary()}")
    return stats
