"""Utilities shared by the price discovery components."""

from __future__ import annotations

import re
from decimal import Decimal, InvalidOperation
from typing import Dict, Iterable, List, Optional
from urllib.parse import urlparse

from .models import PriceCandidate

DEFAULT_USER_AGENT = "RenovationIntelBot/1.0 (+contact@example.com)"
DEFAULT_ACCEPT_LANGUAGE = "fr-FR,fr;q=0.9,en;q=0.8"

_NUMBER = r"\d+(?:[.,\s\u00a0\u202f]\d{3})*(?:[.,]\d{1,2})?"
_MARKED_PRICE_RE = re.compile(
    rf"[€$£]\s?{_NUMBER}|{_NUMBER}\s?[€$£]"
)
_BARE_PRICE_RE = re.compile(_NUMBER)
_SPACES_RE = re.compile(r"[\s\u00a0\u202f]+")
_CURRENCY_SYMBOLS = {"$": "USD", "£": "GBP", "€": "EUR"}


def build_headers(
    user_agent: str = DEFAULT_USER_AGENT,
    accept_language: str = DEFAULT_ACCEPT_LANGUAGE,
) -> Dict[str, str]:
    """Identification headers sent with every request."""
    return {
        "User-Agent": user_agent,
        "Accept-Language": accept_language,
    }


def to_decimal(number: str) -> Optional[Decimal]:
    """Convert a separator-laden number to Decimal.

    ``1.299,99`` and ``129,90`` are read as European notation; ``129.90`` and
    ``1,299.99`` as plain decimal notation.
    """
    if "," in number and re.search(r"\.\d{3}", number):
        normalized = number.replace(".", "").replace(",", ".")
    elif "," in number and not re.search(r"\.\d{2}$", number):
        normalized = number.replace(".", "").replace(",", ".")
    else:
        normalized = number.replace(",", "")
    try:
        return Decimal(normalized)
    except (InvalidOperation, ValueError):
        return None


def parse_price(text: object) -> Optional[PriceCandidate]:
    """Read the first price in ``text``; symbol-marked amounts win over bare numbers."""
    if text is None:
        return None

    raw = str(text)
    match = _MARKED_PRICE_RE.search(raw) or _BARE_PRICE_RE.search(raw)
    if not match:
        return None

    token = _SPACES_RE.sub("", match.group(0))
    currency = "EUR"
    for symbol, code in _CURRENCY_SYMBOLS.items():
        if symbol in token:
            currency = code
            break

    value = to_decimal(re.sub(r"[€$£]", "", token))
    if value is None or not value.is_finite() or value <= 0:
        return None
    return PriceCandidate(value=value, currency=currency)


def best_price(candidates: Iterable[Optional[PriceCandidate]]) -> Optional[PriceCandidate]:
    """Lowest positive candidate, or None."""
    valid = [c for c in candidates if c is not None and c.value > 0]
    if not valid:
        return None
    return min(valid, key=lambda candidate: candidate.value)


def normalize_whitespace(value: str) -> str:
    """Collapse repeated spaces and newlines."""
    return re.sub(r"\s+", " ", value).strip()


def normalize_base(url: Optional[str]) -> Optional[str]:
    """Reduce a website URL to ``scheme://host``; None when it is not an absolute http(s) URL."""
    if not url:
        return None
    try:
        parsed = urlparse(url.strip())
    except ValueError:
        return None
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        return None
    return f"{parsed.scheme}://{parsed.netloc.lower()}"


def host_key(url: str) -> str:
    """Host used to look up domain overrides: lowercased, without a leading ``www.``."""
    host = (urlparse(url).hostname or "").lower()
    return host[4:] if host.startswith("www.") else host


def tokenize_query(query: str) -> List[str]:
    """Split a query on non-alphanumeric boundaries."""
    return [token for token in re.split(r"[\W_]+", query.lower()) if token]


def looks_relevant_title(query: str, title: Optional[str]) -> bool:
    """True when the title contains at least one query token.

    A missing title or a query without tokens cannot be judged and passes.
    """
    if not query or not title:
        return True
    tokens = tokenize_query(query)
    if not tokens:
        return True
    lowered = title.lower()
    return any(token in lowered for token in tokens)
