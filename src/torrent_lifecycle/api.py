"""
qBittorrent Web API client - qbittorrent-api wrapper

Thin transport used by the qBittorrent backend. Exposes plain dicts and the
exact command verbs the removal state machine selects between (pause/resume
before Web API 2.11, stop/start from 2.11).
"""

import qbittorrentapi
from typing import List, Dict, Optional

from torrent_lifecycle.errors import ConnectError
from torrent_lifecycle.logging import get_logger

logger = get_logger(__name__)

DEFAULT_TIMEOUT = 30


class QBittorrentAPI:
    """
    qBittorrent Web API client wrapper

    Uses qbittorrent-api package for:
    - Auto-managed authentication
    - Structured response types
    - Request timeouts
    """

    def __init__(self, host: str, username: str, password: str, timeout: Optional[float] = DEFAULT_TIMEOUT,
                 verify_ssl: bool = True, name: str = 'qbittorrent'):
        """
        Initialize API client (does not connect yet)

        Args:
            host: qBittorrent host URL (e.g., 'http://localhost:8080')
            username: qBittorrent username
            password: qBittorrent password
            timeout: Per-request timeout in seconds
            verify_ssl: Verify the Web UI certificate
            name: Configured client name (for error messages)
        """
        self.host = host.rstrip('/')
        self.username = username
        self.password = password
        self.name = name
        self._connected = False

        self.client = qbittorrentapi.Client(
            host=self.host,
            username=self.username,
            password=self.password,
            VERIFY_WEBUI_CERTIFICATE=verify_ssl,
            REQUESTS_ARGS={'timeout': timeout}
        )

    def connect(self):
        """
        Log in to qBittorrent

        Raises:
            ConnectError: If login fails or server cannot be reached
        """
        if self._connected:
            return

        try:
            self.client.auth_log_in()
        except qbittorrentapi.LoginFailed as e:
            raise ConnectError(self.name, self.host, f"Login failed: {e}") from e
        except qbittorrentapi.APIConnectionError as e:
            raise ConnectError(self.name, self.host, str(e)) from e
        except Exception as e:
            raise ConnectError(self.name, self.host, f"{type(e).__name__}: {e}") from e

        self._connected = True
        logger.info(f"Successfully authenticated with qBittorrent at {self.host}")

    # Application

    def get_app_version(self) -> str:
        return str(self.client.app_version())

    def get_api_version(self) -> str:
        return str(self.client.app_web_api_version())

    # Torrent Information Methods

    def get_torrents(self) -> List[Dict]:
        """
        Get list of torrents

        Returns:
            List of torrent dictionaries
        """
        torrents = self.client.torrents_info()
        return [dict(t) for t in torrents]

    def get_properties(self, torrent_hash: str) -> Dict:
        """
        Get detailed torrent properties

        Args:
            torrent_hash: Torrent hash

        Returns:
            Properties dictionary
        """
        props = self.client.torrents_properties(torrent_hash=torrent_hash)
        return dict(props)

    def get_trackers(self, torrent_hash: str) -> List[Dict]:
        """
        Get tracker information for a torrent

        Args:
            torrent_hash: Torrent hash

        Returns:
            List of tracker dictionaries in client order
        """
        trackers = self.client.torrents_trackers(torrent_hash=torrent_hash)
        return [dict(t) for t in trackers]

    def get_files(self, torrent_hash: str) -> List[Dict]:
        """
        Get file list for a torrent

        Args:
            torrent_hash: Torrent hash

        Returns:
            List of file dictionaries
        """
        files = self.client.torrents_files(torrent_hash=torrent_hash)
        return [dict(f) for f in files]

    # Torrent Control Methods

    def pause_torrents(self, hashes: List[str]) -> bool:
        """Pause torrents (qBittorrent < 5.0)"""
        self.client.torrents_pause(torrent_hashes=hashes)
        return True

    def resume_torrents(self, hashes: List[str]) -> bool:
        """Resume torrents (qBittorrent < 5.0)"""
        self.client.torrents_resume(torrent_hashes=hashes)
        return True

    def stop_torrents(self, hashes: List[str]) -> bool:
        """Stop torrents (qBittorrent 5.0+)"""
        self.client.torrents_stop(torrent_hashes=hashes)
        return True

    def start_torrents(self, hashes: List[str]) -> bool:
        """Start torrents (qBittorrent 5.0+)"""
        self.client.torrents_start(torrent_hashes=hashes)
        return True

    def reannounce_torrents(self, hashes: List[str]) -> bool:
        """Reannounce torrents to trackers"""
        self.client.torrents_reannounce(torrent_hashes=hashes)
        return True

    def delete_torrents(self, hashes: List[str], delete_files: bool) -> bool:
        """Delete torrents"""
        self.client.torrents_delete(delete_files=delete_files, torrent_hashes=hashes)
        return True

    # Category Methods

    def set_category(self, hashes: List[str], category: str) -> bool:
        """Set category"""
        self.client.torrents_set_category(category=category, torrent_hashes=hashes)
        return True
