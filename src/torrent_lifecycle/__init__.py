"""Rule-driven torrent lifecycle automation for remote download clients."""

from torrent_lifecycle.__version__ import __version__, __description__

__all__ = ['__version__', '__description__']
