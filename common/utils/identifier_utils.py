import random
import re
from datetime import datetime
from typing import Iterable, Optional

DEFAULT_LOGIN_BASE = 'doctor'
LOGIN_SUFFIX_WIDTH = 4
LIKE_ESCAPE = '\\'


def new_business_identifier(prefix: str, now: Optional[datetime] = None) -> str:
    """
    PREFIX + YY + MM + DD + last 6 digits of epoch millis + 2-digit random

    e.g. DR25101948213307
    Collisions are not checked; a fresh value is generated per saga attempt.
    """
    now = now or datetime.now()
    epoch_millis = str(int(now.timestamp() * 1000))
    tie_breaker = str(random.randint(0, 99)).zfill(2)

    return f"{prefix}{now:%y%m%d}{epoch_millis[-6:]}{tie_breaker}"


def derive_login_base(display_name: Optional[str]) -> str:
    tokens = (display_name or '').strip().split()
    first = tokens[0] if tokens else DEFAULT_LOGIN_BASE
    base = re.sub(r'[^a-z0-9]', '', first.lower())
    return base or DEFAULT_LOGIN_BASE


def next_login_address(base: str, domain: str, existing_addresses: Iterable[str]) -> str:
    pattern = re.compile(
        rf'^{re.escape(base)}(\d{{{LOGIN_SUFFIX_WIDTH},}})@{re.escape(domain)}$',
        re.IGNORECASE
    )

    max_suffix = 0
    for address in existing_addresses:
        match = pattern.match(str(address or '').strip().lower())
        if not match:
            continue
        max_suffix = max(max_suffix, int(match.group(1)))

    return f"{base}{str(max_suffix + 1).zfill(LOGIN_SUFFIX_WIDTH)}@{domain}"


def escape_like(value: str) -> str:
    """Escape LIKE wildcards so ``value`` matches literally (use with ``escape=LIKE_ESCAPE``)."""
    return (
        value.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace('%', LIKE_ESCAPE + '%')
        .replace('_', LIKE_ESCAPE + '_')
    )
