"""Pytest configuration and shared fixtures for the torrent-lifecycle test suite."""

import os
import time
from typing import Any, Dict, List
from unittest.mock import Mock

import pytest

from torrent_lifecycle.clients.qbittorrent import QBittorrentClient
from torrent_lifecycle.models import Torrent
from torrent_lifecycle.rules import RuleSet

ENV_VARS = (
    'TORRENT_LIFECYCLE_DRY_RUN',
    'TORRENT_LIFECYCLE_LOG_LEVEL',
    'TORRENT_LIFECYCLE_LOG_FILE',
    'TORRENT_LIFECYCLE_TRACE_MODE',
    'TORRENT_LIFECYCLE_CONFIG_DIR',
)


@pytest.fixture(autouse=True)
def clean_environment_variables():
    """Clean up environment variables before and after each test."""
    original = {name: os.environ.get(name) for name in ENV_VARS}

    for name in ENV_VARS:
        os.environ.pop(name, None)

    yield

    for name in ENV_VARS:
        os.environ.pop(name, None)
        if original[name] is not None:
            os.environ[name] = original[name]


# ============================================================================
# Mock qBittorrent transport
# ============================================================================

class MockQBittorrentAPI:
    """Mock QBittorrentAPI transport for testing without a real qBittorrent instance."""

    def __init__(self, api_version: str = '2.11.2'):
        self.host = 'http://localhost:8080'
        self.api_version = api_version
        self.app_version = 'v5.0.1'
        self.connected = False
        self.torrents_data: Dict[str, Dict] = {}
        self.properties_data: Dict[str, Dict] = {}
        self.trackers_data: Dict[str, List[Dict]] = {}
        self.files_data: Dict[str, List[Dict]] = {}

        # Ordered log of every mutating call: (method, hashes, extra)
        self.calls: List[tuple] = []

    def add(self, info: Dict[str, Any], properties: Dict[str, Any] = None,
            trackers: List[Dict] = None, files: List[Dict] = None):
        """Register a torrent with its detail payloads."""
        torrent_hash = info['hash']
        self.torrents_data[torrent_hash] = dict(info)
        self.properties_data[torrent_hash] = dict(properties or {})
        self.trackers_data[torrent_hash] = list(trackers or [])
        self.files_data[torrent_hash] = list(files or [])

    def connect(self):
        self.connected = True

    def get_api_version(self):
        return self.api_version

    def get_app_version(self):
        return self.app_version

    def get_torrents(self):
        return [dict(t) for t in self.torrents_data.values()]

    def get_properties(self, torrent_hash):
        return self.properties_data[torrent_hash]

    def get_trackers(self, torrent_hash):
        return self.trackers_data[torrent_hash]

    def get_files(self, torrent_hash):
        return self.files_data[torrent_hash]

    def pause_torrents(self, hashes):
        self.calls.append(('pause', list(hashes)))
        return True

    def resume_torrents(self, hashes):
        self.calls.append(('resume', list(hashes)))
        return True

    def stop_torrents(self, hashes):
        self.calls.append(('stop', list(hashes)))
        return True

    def start_torrents(self, hashes):
        self.calls.append(('start', list(hashes)))
        return True

    def reannounce_torrents(self, hashes):
        self.calls.append(('reannounce', list(hashes)))
        return True

    def delete_torrents(self, hashes, delete_files):
        self.calls.append(('delete', list(hashes), delete_files))
        for torrent_hash in hashes:
            self.torrents_data.pop(torrent_hash, None)
        return True

    def set_category(self, hashes, category):
        self.calls.append(('set_category', list(hashes), category))
        for torrent_hash in hashes:
            if torrent_hash in self.torrents_data:
                self.torrents_data[torrent_hash]['category'] = category
        return True

    def verbs(self):
        """Just the method names of recorded calls, in order."""
        return [call[0] for call in self.calls]


@pytest.fixture
def mock_api():
    """Create a mock transport reporting Web API 2.11.2 (qBittorrent 5.0)."""
    return MockQBittorrentAPI()


@pytest.fixture
def make_api():
    """Factory for mock transports reporting a given Web API version."""
    return MockQBittorrentAPI


@pytest.fixture
def sleep_mock():
    """Replacement for time.sleep that records the requested pauses."""
    return Mock()


@pytest.fixture
def make_client(mock_api, sleep_mock):
    """Factory building a QBittorrentClient over the mock transport."""
    def _make(rule_set: RuleSet = None, name: str = 'home', **config):
        return QBittorrentClient(name, config, rule_set or RuleSet(), api=mock_api, sleep=sleep_mock)
    return _make


# ============================================================================
# Torrent payloads (qBittorrent Web API shapes)
# ============================================================================

@pytest.fixture
def seeding_payload() -> Dict[str, Any]:
    """Seeding torrent on a private tracker, 2 GB, ratio 2.5, 20 days seeding."""
    now = int(time.time())
    return {
        'info': {
            'hash': 'seed000000000000000000000000000000000001',
            'name': 'Popular.Show.S01E01.720p',
            'size': 2147483648,
            'state': 'uploading',
            'category': 'tv',
            'ratio': 2.5,
            'added_on': now - 30 * 86400,
        },
        'properties': {
            'save_path': '/downloads/tv',
            'total_downloaded': 2147483648,
            'share_ratio': 2.5,
            'addition_date': now - 30 * 86400,
            'seeding_time': 20 * 86400,
            'seeds_total': 50,
            'peers_total': 8,
        },
        'trackers': [
            {'url': '** [DHT] **', 'msg': ''},
            {'url': '** [PeX] **', 'msg': ''},
            {'url': '** [LSD] **', 'msg': ''},
            {'url': 'https://tracker.private.example/announce?passkey=abc', 'msg': 'Working'},
        ],
        'files': [
            {'name': 'Popular.Show.S01E01.720p/episode.mkv'},
            {'name': 'Popular.Show.S01E01.720p/episode.nfo'},
        ],
    }


@pytest.fixture
def downloading_payload() -> Dict[str, Any]:
    """Stalled download on a public tracker."""
    now = int(time.time())
    return {
        'info': {
            'hash': 'down000000000000000000000000000000000002',
            'name': 'Downloading.Movie.2160p',
            'size': 5368709120,
            'state': 'stalledDL',
            'category': 'movies',
            'ratio': 0.0,
            'added_on': now - 2 * 86400,
        },
        'properties': {
            'save_path': '/downloads/movies',
            'total_downloaded': 1073741824,
            'share_ratio': 0.0,
            'addition_date': now - 2 * 86400,
            'seeding_time': 0,
            'seeds_total': 0,
            'peers_total': 3,
        },
        'trackers': [
            {'url': 'udp://open.tracker.example:1337/announce', 'msg': 'Timed out'},
        ],
        'files': [
            {'name': 'Downloading.Movie.2160p.mkv'},
        ],
    }


def register(api: MockQBittorrentAPI, payload: Dict[str, Any]):
    """Add a payload fixture to the mock transport."""
    api.add(payload['info'], payload['properties'], payload['trackers'], payload['files'])


@pytest.fixture
def register_payload():
    return register


# ============================================================================
# Torrent records
# ============================================================================

@pytest.fixture
def make_torrent():
    """Factory for Torrent records with sensible defaults."""
    def _make(**overrides) -> Torrent:
        values = {
            'hash': 'abc123def456',
            'name': 'Example.Torrent.1080p',
            'path': '/downloads',
            'files': ('/downloads/Example.Torrent.1080p.mkv',),
            'total_bytes': 1073741824,
            'downloaded_bytes': 1073741824,
            'state': 'uploading',
            'ratio': 2.0,
            'added_seconds': 10 * 86400,
            'seeding_seconds': 9 * 86400,
            'label': 'movies',
            'seeds': 5,
            'peers': 2,
            'tracker_name': 'tracker.example',
            'tracker_status': 'Working',
        }
        values.update(overrides)
        return Torrent(**values)
    return _make
