from abc import ABCMeta, abstractmethod
from typing import Any, Dict, Tuple

from torrent_lifecycle.engine import PolicyEngine
from torrent_lifecycle.freespace import FreeSpaceAccountant
from torrent_lifecycle.models import Torrent
from torrent_lifecycle.rules import RuleSet


class Client(metaclass=ABCMeta):
    """
    Capability contract every download client backend implements.

    Free space accounting and rule evaluation are shared; connecting,
    fetching and mutating torrents are backend specific.
    """

    type = 'unknown'

    def __init__(self, name: str, config: Dict[str, Any], rule_set: RuleSet) -> None:
        self.name = name
        self.config = config
        self.policy = PolicyEngine(rule_set)
        self.free_space = FreeSpaceAccountant()

    @abstractmethod
    def connect(self) -> None:
        """Open a session; raises ConnectError or UnsupportedVersionError"""
        pass

    @abstractmethod
    def get_torrents(self) -> Dict[str, Torrent]:
        """All torrents keyed by hash; raises FetchError, never partial"""
        pass

    @abstractmethod
    def remove_torrent(self, torrent_hash: str, delete_data: bool) -> bool:
        """Run the removal sequence; raises RemovalStepError"""
        pass

    @abstractmethod
    def set_torrent_label(self, torrent_hash: str, label: str) -> None:
        """Set the torrent's label; raises LabelError"""
        pass

    # Free space

    def get_current_free_space(self, path: str) -> int:
        return self.free_space.establish(path)

    def add_free_space(self, num_bytes: int) -> None:
        self.free_space.credit(num_bytes)

    def get_free_space(self) -> float:
        return self.free_space.gb

    # Filters

    def should_ignore(self, torrent: Torrent) -> bool:
        return self.policy.should_ignore(torrent)

    def should_remove(self, torrent: Torrent) -> bool:
        return self.policy.should_remove(torrent)

    def should_relabel(self, torrent: Torrent) -> Tuple[str, bool]:
        return self.policy.should_relabel(torrent)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name!r}>"
