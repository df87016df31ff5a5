"""Netscape (cookies.txt) format loading into a requests cookie jar."""

import re
from typing import Optional

import requests
import structlog
from requests.cookies import RequestsCookieJar, create_cookie, get_cookie_header

from feed_syndicator.errors import CookieFormatError

logger = structlog.get_logger(__name__)

NETSCAPE_MAGIC = re.compile(r"^#( Netscape)? HTTP Cookie File")
HTTPONLY_PREFIX = "#HttpOnly_"


def load_netscape_cookies(content: str, jar: Optional[RequestsCookieJar] = None) -> RequestsCookieJar:
    """Load cookies from Netscape cookie file content into a jar.

    Each record is seven tab-separated fields: domain, include-subdomains
    flag, path, secure flag, expiry (epoch seconds), name and value. Lines
    starting with ``#`` are comments, except ``#HttpOnly_`` which marks the
    cookie on that line as HttpOnly.

    Args:
        content: Cookie file content
        jar: Jar to add the cookies to, a new one when omitted

    Returns:
        The jar holding the loaded cookies

    Raises:
        CookieFormatError: If the content has no Netscape header or a record is malformed.
            Nothing is added to the jar in that case.
    """
    if not NETSCAPE_MAGIC.match(content):
        raise CookieFormatError("The content does not look like a Netscape format cookies file.")

    cookies = []
    for line_number, row in enumerate(content.splitlines(), start=1):
        http_only = row.startswith(HTTPONLY_PREFIX)
        if http_only:
            row = row[len(HTTPONLY_PREFIX):]
        elif row.startswith("#") or not row.strip():
            continue

        fields = row.split("\t")
        if len(fields) != 7:
            raise CookieFormatError(
                f"Malformed cookie record on line {line_number}",
                details={"fields": len(fields)},
            )

        domain, domain_flag, path, secure, expires, name, value = fields
        try:
            expiry = int(expires) if expires else None
        except ValueError as e:
            raise CookieFormatError(f"Invalid expiry on line {line_number}: {expires}") from e

        # A record without a name is sent as the bare value
        if not name:
            name, value = value, None

        if domain_flag not in ("TRUE", "FALSE"):
            raise CookieFormatError(f"Invalid domain flag on line {line_number}: {domain_flag}")

        rest = {"HttpOnly": None} if http_only else {}
        cookies.append(
            create_cookie(
                name,
                value,
                domain=domain,
                path=path or "/",
                secure=secure == "TRUE",
                expires=expiry or None,
                discard=expiry is None or expiry == 0,
                rest=rest,
            )
        )

    jar = jar if jar is not None else RequestsCookieJar()
    for cookie in cookies:
        jar.set_cookie(cookie)

    logger.info("Loaded cookies", count=len(cookies))
    return jar


def cookie_header(jar: RequestsCookieJar, url: str) -> str:
    """Return the ``Cookie`` header value the jar would send to ``url``."""
    return get_cookie_header(jar, requests.Request("GET", url)) or ""
