"""
Download client backends

Backends are looked up by the 'type' key of a client's config block.
"""

from typing import Any, Dict

from torrent_lifecycle.clients.base import Client
from torrent_lifecycle.clients.qbittorrent import QBittorrentClient
from torrent_lifecycle.errors import ConfigurationError
from torrent_lifecycle.rules import RuleSet

CLIENT_TYPES = {
    'qbittorrent': QBittorrentClient,
}


def create_client(name: str, config: Dict[str, Any], rule_set: RuleSet, **kwargs) -> Client:
    """
    Create a backend from its configuration

    Args:
        name: Configured client name
        config: Client config block (must contain 'type')
        rule_set: Compiled rules for this client
        **kwargs: Passed through to the backend constructor

    Returns:
        Unconnected Client

    Raises:
        ConfigurationError: If the type is missing or unsupported
    """
    client_type = str(config.get('type', '')).lower()
    backend = CLIENT_TYPES.get(client_type)
    if backend is None:
        supported = ', '.join(sorted(CLIENT_TYPES))
        raise ConfigurationError(
            f"clients.{name}",
            f"Unsupported client type {config.get('type')!r} (supported: {supported})"
        )
    return backend(name, config, rule_set, **kwargs)


__all__ = ['Client', 'QBittorrentClient', 'CLIENT_TYPES', 'create_client']
