"""
Free space accounting for a single run against one client

The filesystem is queried once to establish a baseline; afterwards every
removal credits the bytes it freed, so later rules can react to space
reclaimed earlier in the same run.
"""

from typing import Callable

import psutil

from torrent_lifecycle.errors import DiskQueryError
from torrent_lifecycle.logging import get_logger
from torrent_lifecycle.utils import GIB, format_bytes

logger = get_logger(__name__)


class FreeSpaceAccountant:
    """Running free space estimate in GiB"""

    def __init__(self):
        self._free_gb = 0.0
        self._is_set = False

    @property
    def gb(self) -> float:
        return self._free_gb

    @property
    def is_set(self) -> bool:
        return self._is_set

    def establish(self, path: str) -> int:
        """
        Query free space at path and use it as the baseline

        Args:
            path: Directory on the filesystem holding torrent data

        Returns:
            Free bytes at path

        Raises:
            DiskQueryError: If the path cannot be queried
        """
        try:
            usage = psutil.disk_usage(path)
        except OSError as e:
            raise DiskQueryError(path, f"{type(e).__name__}: {e}") from e

        self._free_gb = usage.free / GIB
        self._is_set = True
        logger.info(f"Free space at {path}: {format_bytes(usage.free)}")
        return usage.free

    def credit(self, num_bytes: int) -> None:
        """Add bytes freed by a removal; no filesystem access"""
        self._free_gb += num_bytes / GIB
        logger.debug(f"Credited {format_bytes(num_bytes)}, estimated free space now {self._free_gb:.2f} GB")

    def reader(self) -> Callable[[], float]:
        """Zero-argument callable returning the current estimate"""
        return lambda: self._free_gb
