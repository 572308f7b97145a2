"""
URL normalisation for competitor inputs.

Turns raw user strings into absolute http(s) URLs. Purely syntactic: the
public suffix check uses tldextract's bundled snapshot, never the network.
"""

from __future__ import annotations

import ipaddress
import re
from urllib.parse import urlsplit, urlunsplit

import tldextract

from scout.core.exceptions import UrlValidationError

_SCHEME_RE = re.compile(r"^https?://", re.IGNORECASE)
_LABEL_RE = re.compile(r"^(?!-)[a-z0-9-]{1,63}(?<!-)$")

# Offline extractor: suffix_list_urls=() pins the bundled public suffix list.
_extract = tldextract.TLDExtract(suffix_list_urls=())


def _is_ip(host: str) -> bool:
    try:
        ipaddress.ip_address(host)
    except ValueError:
        return False
    return True


def _valid_hostname(host: str) -> bool:
    if host == "localhost" or _is_ip(host):
        return True
    labels = host.rstrip(".").split(".")
    if len(labels) < 2 or not all(_LABEL_RE.match(label) for label in labels):
        return False
    return bool(_extract(host).suffix)


def normalize_url(raw: str) -> str:
    """
    Validate and canonicalise ``raw`` into an absolute, schemed URL.

    Prefixes ``https://`` when no http(s) scheme is present, lower-cases the
    scheme and host and gives an empty path a trailing ``/``. Normalising an
    already normalised URL returns it unchanged.

    Raises:
        UrlValidationError: naming the offending input.
    """
    if not isinstance(raw, str):
        raise UrlValidationError(str(raw), "expected a string")

    candidate = raw.strip()
    if not candidate:
        raise UrlValidationError(raw, "empty value")
    if any(ch.isspace() for ch in candidate):
        raise UrlValidationError(raw, "contains whitespace")

    if not _SCHEME_RE.match(candidate):
        candidate = f"https://{candidate}"

    try:
        parts = urlsplit(candidate)
        port = parts.port
    except ValueError as exc:
        raise UrlValidationError(raw, str(exc)) from exc

    host = (parts.hostname or "").lower()
    if not host:
        raise UrlValidationError(raw, "missing host")
    if not host.isascii():
        try:
            host = host.encode("idna").decode("ascii")
        except UnicodeError as exc:
            raise UrlValidationError(raw, f"invalid host {host!r}") from exc
    if not _valid_hostname(host):
        raise UrlValidationError(raw, f"invalid host {host!r}")

    netloc = f"[{host}]" if ":" in host else host
    if port is not None:
        netloc = f"{netloc}:{port}"
    if parts.username or parts.password:
        userinfo = parts.username or ""
        if parts.password:
            userinfo = f"{userinfo}:{parts.password}"
        netloc = f"{userinfo}@{netloc}"

    return urlunsplit(
        (parts.scheme.lower(), netloc, parts.path or "/", parts.query, parts.fragment)
    )

