"""
Link scanner that crawls a site breadth-first from a seed URL and checks
every discovered link. Outputs one result per URL with its status, HTTP
status code and the pages that link to it.
"""
from linkscan.config import BasicAuth, ScanConfig
from linkscan.control import RunState, TerminationReason
from linkscan.errors import InvalidConfig, InvalidSeedUrl, InvalidUrl, LinkScanError
from linkscan.results import ScanResult, ScanStatus
from linkscan.scanner import Scan, ScanReport, recheck, scan
from linkscan.scheduler import ProgressSnapshot

__version__ = "1.0.0"
__all__ = [
    "scan",
    "recheck",
    "Scan",
    "ScanReport",
    "ScanConfig",
    "BasicAuth",
    "ScanResult",
    "ScanStatus",
    "ProgressSnapshot",
    "RunState",
    "TerminationReason",
    "LinkScanError",
    "InvalidUrl",
    "InvalidSeedUrl",
    "InvalidConfig",
]
