"""
Exchange rates for material bought in EUR or USD.

Rates come from frankfurter.app (free, no API key). A failed fetch never
breaks a quote: the caller keeps the manual rate it already has.
"""

import json
import logging
import math
import urllib.error
import urllib.parse
import urllib.request
from typing import Callable, Optional, Tuple

from .config import settings
from .schemas import Currency

logger = logging.getLogger(__name__)

RateFetcher = Callable[[str, str], Optional[float]]


def _usable_rate(rate) -> bool:
    return rate is not None and math.isfinite(rate) and rate > 0


def fetch_exchange_rate(from_currency: str, to_currency: str = "CZK") -> Optional[float]:
    """
    Fetch the latest rate from_currency -> to_currency.
    Returns None on any network or response problem.
    """
    from_currency = getattr(from_currency, "value", from_currency)
    to_currency = getattr(to_currency, "value", to_currency)
    query = urllib.parse.urlencode({"from": from_currency, "to": to_currency})
    url = f"{settings.EXCHANGE_RATE_API_URL}?{query}"

    try:
        with urllib.request.urlopen(url, timeout=settings.EXCHANGE_RATE_TIMEOUT) as response:
            data = json.loads(response.read())
        rate = float(data["rates"][to_currency])
    except (urllib.error.URLError, OSError, ValueError, KeyError, TypeError) as e:
        logger.warning("Failed to fetch exchange rate %s->%s: %s", from_currency, to_currency, e)
        return None

    if not _usable_rate(rate):
        logger.warning("Ignoring unusable exchange rate %s->%s: %s", from_currency, to_currency, rate)
        return None
    return rate


def resolve_exchange_rate(currency, manual_rate: float,
                          fetcher: RateFetcher = fetch_exchange_rate) -> Tuple[float, str]:
    """
    Pick the native -> CZK rate for a quote.

    Returns (rate, source):
        "fixed"   currency is CZK, rate 1.0
        "live"    freshly fetched
        "manual"  fetch failed or currency unknown, manual_rate kept as is
    """
    try:
        currency = Currency(currency)
    except ValueError:
        logger.warning("Unknown currency %r, keeping manual exchange rate %s", currency, manual_rate)
        return manual_rate, "manual"
    if currency == Currency.CZK:
        return 1.0, "fixed"

    rate = fetcher(currency.value, settings.SETTLEMENT_CURRENCY)
    if _usable_rate(rate):
        logger.info("Exchange rate %s->%s: %s", currency.value, settings.SETTLEMENT_CURRENCY, rate)
        return rate, "live"

    logger.warning("Keeping manual exchange rate %s for %s", manual_rate, currency.value)
    return manual_rate, "manual"


def rate_notice(currency, source: str) -> str:
    """Operator-facing message for a rate lookup, empty when nothing to say."""
    if source == "manual":
        return (
            f"Could not download the current {getattr(currency, 'value', currency)} rate. "
            f"The manually entered rate was kept, check your internet connection."
        )
    return ""
