"""
qBittorrent backend

Builds Torrent records from the Web API and runs removals through the
version-gated removal state machine.
"""

import os
import time
from typing import Any, Callable, Dict, Optional

import qbittorrentapi

from torrent_lifecycle.api import DEFAULT_TIMEOUT, QBittorrentAPI
from torrent_lifecycle.clients.base import Client
from torrent_lifecycle.errors import (
    ConnectError,
    FetchError,
    LabelError,
    UnsupportedVersionError,
)
from torrent_lifecycle.logging import get_logger
from torrent_lifecycle.models import Torrent
from torrent_lifecycle.removal import DEFAULT_SETTLE_INTERVALS, RemovalStateMachine, parse_api_version
from torrent_lifecycle.rules import RuleSet
from torrent_lifecycle.utils import select_tracker

logger = get_logger(__name__)

MIN_API_VERSION = '2.2'


class QBittorrentClient(Client):
    """qBittorrent implementation of the Client contract"""

    type = 'qBittorrent'

    def __init__(self, name: str, config: Dict[str, Any], rule_set: RuleSet,
                 api: Optional[QBittorrentAPI] = None, sleep: Callable[[float], None] = time.sleep) -> None:
        super().__init__(name, config, rule_set)
        self.api = api or QBittorrentAPI(
            host=config.get('host', 'http://localhost:8080'),
            username=config.get('username', 'admin'),
            password=config.get('password', ''),
            timeout=config.get('timeout', DEFAULT_TIMEOUT),
            verify_ssl=config.get('verify_ssl', True),
            name=name
        )
        self.sleep = sleep
        self.settle_intervals = tuple(config.get('settle_intervals') or DEFAULT_SETTLE_INTERVALS)

    def connect(self) -> None:
        self.api.connect()

        try:
            api_version_str = self.api.get_api_version()
            app_version = self.api.get_app_version()
        except Exception as e:
            raise ConnectError(self.name, self.api.host, f"Cannot read Web API version: {e}") from e

        logger.info(f"[{self.name}] qBittorrent {app_version} (Web API {api_version_str})")

        try:
            api_version = parse_api_version(api_version_str)
        except ValueError as e:
            raise ConnectError(self.name, self.api.host, str(e)) from e

        if api_version < parse_api_version(MIN_API_VERSION):
            raise UnsupportedVersionError(self.name, api_version_str, MIN_API_VERSION)

    def get_torrents(self) -> Dict[str, Torrent]:
        logger.debug(f"[{self.name}] Retrieving torrents...")
        try:
            torrent_list = self.api.get_torrents()
        except Exception as e:
            raise FetchError('get torrents', f"{type(e).__name__}: {e}") from e
        logger.debug(f"[{self.name}] Retrieved {len(torrent_list)} torrents")

        now = time.time()
        torrents = {}
        for info in torrent_list:
            torrent = self._build_torrent(info, now)
            torrents[torrent.hash] = torrent

        return torrents

    def _build_torrent(self, info: Dict[str, Any], now: float) -> Torrent:
        torrent_hash = info['hash']

        properties = self._fetch('get torrent properties', self.api.get_properties, torrent_hash)
        trackers = self._fetch('get torrent trackers', self.api.get_trackers, torrent_hash)
        contents = self._fetch('get torrent files', self.api.get_files, torrent_hash)

        tracker_name, tracker_status = select_tracker(trackers)

        save_path = properties.get('save_path') or info.get('save_path') or ''
        files = tuple(os.path.join(save_path, f['name']) for f in contents)

        added_on = properties.get('addition_date') or info.get('added_on') or 0
        added_seconds = max(0, int(now - added_on)) if added_on > 0 else 0

        return Torrent(
            hash=torrent_hash,
            name=info.get('name', ''),
            path=save_path,
            files=files,
            total_bytes=int(info.get('size', 0)),
            downloaded_bytes=int(properties.get('total_downloaded', 0)),
            state=str(info.get('state', '')),
            ratio=float(properties.get('share_ratio', info.get('ratio', 0.0))),
            added_seconds=added_seconds,
            seeding_seconds=int(properties.get('seeding_time', 0)),
            label=info.get('category') or '',
            seeds=int(properties.get('seeds_total', 0)),
            peers=int(properties.get('peers_total', 0)),
            tracker_name=tracker_name,
            tracker_status=tracker_status,
            free_space_set=self.free_space.is_set,
            free_space=self.free_space.reader(),
        )

    def _fetch(self, operation: str, call, torrent_hash: str):
        try:
            return call(torrent_hash)
        except Exception as e:
            raise FetchError(operation, f"{type(e).__name__}: {e}", torrent_hash) from e

    def remove_torrent(self, torrent_hash: str, delete_data: bool) -> bool:
        machine = RemovalStateMachine(self.api, sleep=self.sleep, settle_intervals=self.settle_intervals)
        return machine.run(torrent_hash, delete_data)

    def set_torrent_label(self, torrent_hash: str, label: str) -> None:
        try:
            self.api.set_category([torrent_hash], label)
        except qbittorrentapi.Conflict409Error as e:
            raise LabelError(torrent_hash, label, f"Category does not exist: {e}") from e
        except Exception as e:
            raise LabelError(torrent_hash, label, f"{type(e).__name__}: {e}") from e
