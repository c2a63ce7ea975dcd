"""
Scan configuration.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field, fields
from typing import Any, Dict, Mapping, Optional, Tuple

import soupsieve

from linkscan.errors import InvalidConfig

DEFAULT_MAX_DEPTH = 10
DEFAULT_MAX_URLS = 500
DEFAULT_CONCURRENCY = 10
DEFAULT_TIMEOUT_MS = 30_000
DEFAULT_USER_AGENT = "LinkScan/1.0"

# camelCase keys written by the job layer -> ScanConfig field names
_MAPPING_ALIASES: Dict[str, str] = {
    "maxDepth": "max_depth",
    "maxUrls": "max_urls",
    "timeoutMs": "timeout_ms",
    "requestTimeout": "timeout_ms",
    "totalTimeoutMs": "total_timeout_ms",
    "sameOriginOnly": "same_origin_only",
    "userAgent": "user_agent",
    "regexExclusions": "regex_exclusions",
    "wildcardExclusions": "wildcard_exclusions",
    "cssSelectors": "exclude_selectors",
}


@dataclass(frozen=True, slots=True)
class BasicAuth:
    """HTTP basic-auth credentials for the scanned site."""
    username: str
    password: str = field(repr=False)

    def as_tuple(self) -> Tuple[str, str]:
        return self.username, self.password


@dataclass(frozen=True, slots=True)
class ScanConfig:
    """Immutable per-run settings."""
    max_depth: int = DEFAULT_MAX_DEPTH
    max_urls: int = DEFAULT_MAX_URLS
    concurrency: int = DEFAULT_CONCURRENCY
    timeout_ms: int = DEFAULT_TIMEOUT_MS
    total_timeout_ms: Optional[int] = None
    same_origin_only: bool = True
    auth: Optional[BasicAuth] = None
    user_agent: str = DEFAULT_USER_AGENT
    include_subdomains: bool = False
    check_external: bool = True
    regex_exclusions: Tuple[str, ...] = ()
    wildcard_exclusions: Tuple[str, ...] = ()
    exclude_selectors: Tuple[str, ...] = ()

    @property
    def timeout_s(self) -> float:
        return self.timeout_ms / 1000

    @property
    def total_timeout_s(self) -> Optional[float]:
        if self.total_timeout_ms is None:
            return None
        return self.total_timeout_ms / 1000

    def validate(self) -> "ScanConfig":
        """Raise InvalidConfig if any setting is out of range; return self."""
        if self.max_depth < 0:
            raise InvalidConfig(f"max_depth must be >= 0, got {self.max_depth}")
        if self.concurrency < 1:
            raise InvalidConfig(f"concurrency must be >= 1, got {self.concurrency}")
        if self.max_urls < 1:
            raise InvalidConfig(f"max_urls must be >= 1, got {self.max_urls}")
        if self.timeout_ms <= 0:
            raise InvalidConfig(f"timeout_ms must be positive, got {self.timeout_ms}")
        if self.total_timeout_ms is not None and self.total_timeout_ms <= 0:
            raise InvalidConfig(f"total_timeout_ms must be positive, got {self.total_timeout_ms}")
        for pattern in self.regex_exclusions:
            try:
                re.compile(pattern)
            except re.error as e:
                raise InvalidConfig(f"Invalid regex exclusion {pattern!r}: {e}") from e
        for selector in self.exclude_selectors:
            if not selector.strip():
                continue
            try:
                soupsieve.compile(selector)
            except soupsieve.SelectorSyntaxError as e:
                raise InvalidConfig(f"Invalid CSS selector {selector!r}: {e}") from e
        return self

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "ScanConfig":
        """
        Build a config from a JSON-style mapping.

        Accepts both field names and the camelCase keys used by stored scan
        configs. Unknown keys are ignored. The result is not validated.
        """
        known = {f.name for f in fields(cls)}
        kwargs: Dict[str, Any] = {}

        for key, value in data.items():
            name = _MAPPING_ALIASES.get(key, key)
            if name in known and value is not None:
                kwargs[name] = value

        # Inverted flags from the settings form
        if "excludeSubdomains" in data and "include_subdomains" not in kwargs:
            kwargs["include_subdomains"] = not data["excludeSubdomains"]
        if "skipExternalDomains" in data and "check_external" not in kwargs:
            kwargs["check_external"] = not data["skipExternalDomains"]

        auth = kwargs.get("auth")
        if isinstance(auth, Mapping):
            if auth.get("username") and auth.get("password") is not None:
                kwargs["auth"] = BasicAuth(str(auth["username"]), str(auth["password"]))
            else:
                kwargs.pop("auth")

        for name in ("regex_exclusions", "wildcard_exclusions", "exclude_selectors"):
            if name in kwargs:
                kwargs[name] = tuple(p for p in kwargs[name] if p and p.strip())

        return cls(**kwargs)
