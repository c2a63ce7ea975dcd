"""
Exceptions raised by the scanner before a run starts.

Per-URL failures never surface as exceptions; they are recorded on the
URL's ScanResult instead.
"""
from __future__ import annotations


class LinkScanError(Exception):
    """Base class for all linkscan errors."""


class InvalidUrl(LinkScanError, ValueError):
    """A URL could not be parsed into a usable absolute http(s) URL."""


class InvalidSeedUrl(InvalidUrl):
    """The seed URL of a scan cannot be normalized."""


class InvalidConfig(LinkScanError, ValueError):
    """A ScanConfig failed validation."""
