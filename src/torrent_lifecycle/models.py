"""Torrent record shared by every backend, the rule engine and the runner."""

from dataclasses import dataclass, field, fields
from typing import Any, Callable, Dict, Tuple

SECONDS_PER_HOUR = 3600
SECONDS_PER_DAY = 86400

# Backend states that mean the payload is still incomplete
DOWNLOADING_STATES = frozenset({
    'downloading',
    'stalleddl',
    'queueddl',
    'pauseddl',
    'stoppeddl',
    'checkingdl',
})

SEEDING_STATES = frozenset({
    'uploading',
    'stalledup',
})


def _free_space_unset() -> float:
    return 0.0


@dataclass(frozen=True)
class Torrent:
    """
    Snapshot of one torrent as observed during a single run.

    ``free_space`` is a reader owned by the client that produced the record,
    so ``free_space_gb`` reflects space credited by earlier removals in the
    same run.
    """
    hash: str
    name: str
    path: str = ''
    files: Tuple[str, ...] = ()
    total_bytes: int = 0
    downloaded_bytes: int = 0
    state: str = ''
    ratio: float = 0.0
    added_seconds: int = 0
    seeding_seconds: int = 0
    label: str = ''
    seeds: int = 0
    peers: int = 0
    tracker_name: str = ''
    tracker_status: str = ''
    free_space_set: bool = False
    free_space: Callable[[], float] = field(default=_free_space_unset, repr=False, compare=False)

    @property
    def downloaded(self) -> bool:
        return self.state.lower() not in DOWNLOADING_STATES

    @property
    def seeding(self) -> bool:
        return self.state.lower() in SEEDING_STATES

    @property
    def added_hours(self) -> float:
        return self.added_seconds / SECONDS_PER_HOUR

    @property
    def added_days(self) -> float:
        return self.added_seconds / SECONDS_PER_DAY

    @property
    def seeding_hours(self) -> float:
        return self.seeding_seconds / SECONDS_PER_HOUR

    @property
    def seeding_days(self) -> float:
        return self.seeding_seconds / SECONDS_PER_DAY

    @property
    def free_space_gb(self) -> float:
        return self.free_space()

    def as_dict(self) -> Dict[str, Any]:
        """Field view for log output"""
        return {name: getattr(self, name) for name in TORRENT_FIELDS}


# Attribute names a rule condition may reference
TORRENT_FIELDS = tuple(
    [f.name for f in fields(Torrent) if f.name != 'free_space'] + [
        'downloaded',
        'seeding',
        'added_hours',
        'added_days',
        'seeding_hours',
        'seeding_days',
        'free_space_gb',
    ]
)
