"""Spotify playback state sync and remote control core"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("spotify-sync")
except PackageNotFoundError:
    __version__ = "dev"
