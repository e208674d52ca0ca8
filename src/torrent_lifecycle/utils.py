"""
Shared utility functions for torrent lifecycle automation
"""

from typing import Iterable, Mapping, Tuple
from urllib.parse import urlsplit

# Trackers qBittorrent lists for peer sources rather than real announce URLs
PSEUDO_TRACKER_MARKERS = ('[DHT]', '[LSD]', '[PeX]')

GIB = 1024 ** 3


def is_pseudo_tracker(url: str) -> bool:
    """Check whether a tracker URL is a DHT/LSD/PeX placeholder"""
    return any(marker in url for marker in PSEUDO_TRACKER_MARKERS)


def parse_tracker_domain(url: str) -> str:
    """
    Extract the host name from a tracker URL

    Args:
        url: Tracker announce URL

    Returns:
        Lower-cased host name, or empty string if the URL has none

    Examples:
        >>> parse_tracker_domain('http://real.tracker/announce')
        'real.tracker'
        >>> parse_tracker_domain('udp://Tracker.Example:1337/announce')
        'tracker.example'
    """
    try:
        host = urlsplit(url.strip()).hostname
    except ValueError:
        return ''
    return host or ''


def select_tracker(trackers: Iterable[Mapping]) -> Tuple[str, str]:
    """
    Pick the first real tracker in backend order

    Args:
        trackers: Tracker dictionaries with 'url' and 'msg' keys

    Returns:
        Tuple of (tracker_name, tracker_status); empty strings if none qualify
    """
    for tracker in trackers:
        url = tracker.get('url') or ''
        if is_pseudo_tracker(url):
            continue
        return parse_tracker_domain(url), tracker.get('msg') or ''

    return '', ''


def format_bytes(bytes_count: float) -> str:
    """
    Format bytes into human-readable string

    Args:
        bytes_count: Number of bytes

    Returns:
        Formatted string like "1.50 GB"
    """
    for unit in ['B', 'KB', 'MB', 'GB', 'TB']:
        if abs(bytes_count) < 1024.0:
            return f"{bytes_count:.2f} {unit}"
        bytes_count /= 1024.0
    return f"{bytes_count:.2f} PB"


def format_duration(seconds: int) -> str:
    """
    Format seconds into human-readable duration

    Args:
        seconds: Duration in seconds

    Returns:
        Formatted string like "2d 5h 30m"
    """
    if seconds < 60:
        return f"{seconds}s"

    parts = []

    days = seconds // 86400
    if days > 0:
        parts.append(f"{days}d")
        seconds %= 86400

    hours = seconds // 3600
    if hours > 0:
        parts.append(f"{hours}h")
        seconds %= 3600

    minutes = seconds // 60
    if minutes > 0:
        parts.append(f"{minutes}m")

    return " ".join(parts)


def truncate_name(name: str, length: int = 60) -> str:
    """Shorten long torrent names for log lines"""
    if len(name) <= length:
        return name
    return name[:length - 3] + '...'
