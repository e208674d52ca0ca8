__version__ = '0.1.0'
__description__ = 'Rule-driven removal and relabeling of torrents in remote download clients'
