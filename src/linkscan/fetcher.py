"""
Single-attempt HTTP fetches.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

import requests
from requests.adapters import HTTPAdapter

from linkscan.config import ScanConfig
from linkscan.urls import Origin, is_same_origin

log = logging.getLogger(__name__)

HTML_CONTENT_TYPES = ("text/html", "application/xhtml+xml")


class ErrorKind(str, Enum):
    TIMEOUT = "Timeout"
    CONNECTION_FAILED = "ConnectionFailed"
    TLS_ERROR = "TlsError"
    OTHER = "Other"


@dataclass(slots=True)
class FetchOutcome:
    """What one GET produced: a response, or a transport-level failure."""
    url: str
    status_code: Optional[int] = None
    content_type: Optional[str] = None
    final_url: Optional[str] = None
    body: Optional[str] = None
    error_kind: Optional[ErrorKind] = None
    error_message: Optional[str] = None

    @property
    def is_html(self) -> bool:
        return self.body is not None

    @classmethod
    def failure(cls, url: str, kind: ErrorKind, message: str) -> "FetchOutcome":
        return cls(url=url, error_kind=kind, error_message=message)


def is_html_content_type(content_type: Optional[str]) -> bool:
    ct = (content_type or "").split(";")[0].strip().lower()
    return ct in HTML_CONTENT_TYPES


def error_kind_for(exc: requests.RequestException) -> ErrorKind:
    """Map a requests exception to an ErrorKind."""
    # SSLError and ConnectTimeout are ConnectionError subclasses; check them first
    if isinstance(exc, requests.Timeout):
        return ErrorKind.TIMEOUT
    if isinstance(exc, requests.exceptions.SSLError):
        return ErrorKind.TLS_ERROR
    if isinstance(exc, requests.ConnectionError):
        return ErrorKind.CONNECTION_FAILED
    return ErrorKind.OTHER


def build_session(config: ScanConfig) -> requests.Session:
    """Create a requests session sized for the configured worker count."""
    session = requests.Session()
    session.headers["User-Agent"] = config.user_agent
    adapter = HTTPAdapter(pool_connections=config.concurrency, pool_maxsize=config.concurrency)
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    return session


class Fetcher:
    """
    Performs exactly one GET per call with the configured timeout.
    Credentials are only sent to URLs on site_origin (and its subdomains
    when include_subdomains is set). Never raises for network problems;
    they come back as a FetchOutcome with an error_kind and no status code.
    """

    def __init__(
        self,
        config: ScanConfig,
        session: Optional[requests.Session] = None,
        site_origin: Optional[Origin] = None,
    ) -> None:
        self.config = config
        self.site_origin = site_origin
        self._owns_session = session is None
        self.session = session if session is not None else build_session(config)
        self._auth = config.auth.as_tuple() if config.auth else None

    def fetch(self, url: str) -> FetchOutcome:
        try:
            resp = self.session.get(
                url,
                timeout=self.config.timeout_s,
                auth=self._auth_for(url),
                headers={"User-Agent": self.config.user_agent},
                allow_redirects=True,
                stream=True,
            )
        except requests.RequestException as e:
            kind = error_kind_for(e)
            log.debug("%s %s: %s", kind.value, url, e)
            return FetchOutcome.failure(url, kind, str(e) or kind.value)

        content_type = resp.headers.get("content-type")
        outcome = FetchOutcome(
            url=url,
            status_code=resp.status_code,
            content_type=content_type,
            final_url=resp.url or url,
        )
        try:
            # Only successful HTML pages are read in full
            if 200 <= resp.status_code < 300 and is_html_content_type(content_type):
                outcome.body = resp.text
        except requests.RequestException as e:
            # Status is known; the page just yields no links
            log.warning("Failed reading body of %s: %s", url, e)
        finally:
            resp.close()

        log.debug("%s %s (%s)", outcome.status_code, url, content_type or "no content-type")
        return outcome

    def _auth_for(self, url: str):
        if self._auth is None or self.site_origin is None:
            return None
        if not is_same_origin(url, self.site_origin, self.config.include_subdomains):
            return None
        return self._auth

    def close(self) -> None:
        if self._owns_session:
            self.session.close()
