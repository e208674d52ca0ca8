"""
Removal state machine

Removing a torrent goes through stop -> resume -> reannounce -> delete so the
tracker hears about the torrent's final state before the client forgets it.
Each step is separated by a fixed settling pause. A failing step aborts the
sequence where it is; nothing is rolled back.

The stop/resume commands were renamed in qBittorrent 5.0 (Web API 2.11):
older releases use pause/resume, newer ones stop/start. The verb pair is
picked from VERB_SETS using the API version read at removal time.
"""

import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Sequence, Tuple

from packaging.version import InvalidVersion, Version

from torrent_lifecycle.errors import RemovalStepError
from torrent_lifecycle.logging import get_logger

logger = get_logger(__name__)

# Seconds to wait after stop, after resume and after reannounce
DEFAULT_SETTLE_INTERVALS = (1.0, 2.0, 2.0)


class RemovalState(Enum):
    IDLE = 'idle'
    STOPPING = 'stopping'
    STOPPED = 'stopped'
    RESUMING = 'resuming'
    RUNNING = 'running'
    REANNOUNCING = 'reannouncing'
    REANNOUNCED = 'reannounced'
    DELETING = 'deleting'
    DELETED = 'deleted'


@dataclass(frozen=True)
class VerbSet:
    """Transport method names used to halt and restart a torrent"""
    stop: str
    resume: str


LEGACY_VERBS = VerbSet(stop='pause_torrents', resume='resume_torrents')
MODERN_VERBS = VerbSet(stop='stop_torrents', resume='start_torrents')

VERB_CUTOFF_VERSION = Version('2.11')

# Ordered by minimum version; the last entry not above the API version wins
VERB_SETS: Tuple[Tuple[Version, VerbSet], ...] = (
    (Version('0'), LEGACY_VERBS),
    (VERB_CUTOFF_VERSION, MODERN_VERBS),
)


def parse_api_version(value: str) -> Version:
    """
    Parse a Web API version string such as 'v2.11.2' or '2.10'

    Raises:
        ValueError: If the string is not a version
    """
    try:
        return Version(str(value).strip().lstrip('vV'))
    except InvalidVersion as e:
        raise ValueError(f"Invalid API version: {value!r}") from e


def select_verbs(version: Version, verb_sets: Sequence[Tuple[Version, VerbSet]] = VERB_SETS) -> VerbSet:
    """Pick the verb set for an API version"""
    selected = verb_sets[0][1]
    for minimum, verbs in verb_sets:
        if version >= minimum:
            selected = verbs
    return selected


class RemovalStateMachine:
    """
    Drives one torrent through the removal sequence

    The transport must provide get_api_version(), the verb methods named in
    VERB_SETS, reannounce_torrents(hashes) and
    delete_torrents(hashes, delete_files).
    """

    def __init__(self, transport, sleep: Callable[[float], None] = time.sleep,
                 settle_intervals: Sequence[float] = DEFAULT_SETTLE_INTERVALS):
        if len(settle_intervals) != 3:
            raise ValueError("settle_intervals needs exactly three values")

        self.transport = transport
        self.sleep = sleep
        self.settle_intervals = tuple(settle_intervals)
        self.state = RemovalState.IDLE
        self.verbs: Optional[VerbSet] = None

    def run(self, torrent_hash: str, delete_data: bool) -> bool:
        """
        Stop, resume, reannounce and delete a torrent

        Args:
            torrent_hash: Hash of the torrent to remove
            delete_data: Also delete the downloaded files

        Returns:
            True once the torrent is deleted

        Raises:
            RemovalStepError: If any step fails; state stays at that step
        """
        after_stop, after_resume, after_reannounce = self.settle_intervals

        self.state = RemovalState.STOPPING
        self.verbs = self._resolve_verbs(torrent_hash)
        self._step(torrent_hash, 'stopping', self.verbs.stop)
        self.state = RemovalState.STOPPED
        self.sleep(after_stop)

        self.state = RemovalState.RESUMING
        self._step(torrent_hash, 'resuming', self.verbs.resume)
        self.state = RemovalState.RUNNING
        self.sleep(after_resume)

        self.state = RemovalState.REANNOUNCING
        self._step(torrent_hash, 'reannouncing', 'reannounce_torrents')
        self.state = RemovalState.REANNOUNCED
        self.sleep(after_reannounce)

        self.state = RemovalState.DELETING
        self._step(torrent_hash, 'deleting', 'delete_torrents', delete_data)
        self.state = RemovalState.DELETED

        logger.debug(f"Removed {torrent_hash} (delete_data={delete_data})")
        return True

    def _resolve_verbs(self, torrent_hash: str) -> VerbSet:
        # Read fresh every time; the client may have been upgraded since connect
        try:
            version = parse_api_version(self.transport.get_api_version())
        except Exception as e:
            raise RemovalStepError('checking api version', torrent_hash, f"{type(e).__name__}: {e}") from e

        verbs = select_verbs(version)
        logger.debug(f"Web API {version}: using {verbs.stop}/{verbs.resume} for {torrent_hash}")
        return verbs

    def _step(self, torrent_hash: str, step: str, method: str, *args) -> None:
        logger.debug(f"{step.capitalize()} {torrent_hash}")
        try:
            getattr(self.transport, method)([torrent_hash], *args)
        except Exception as e:
            raise RemovalStepError(step, torrent_hash, f"{type(e).__name__}: {e}") from e
