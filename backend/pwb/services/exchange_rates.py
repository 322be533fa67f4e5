"""
Currency exchange rates from the European Central Bank daily feed.

Rates are stored per website in ``exchange_rates``, keyed by target
currency and expressed relative to the website's default currency.
"""

import logging
import xml.etree.ElementTree as ET
from datetime import datetime, timedelta
from typing import Dict, List, Optional

import requests
from sqlalchemy.orm import Session

from pwb.core.cache import cache_get_json, cache_set_json
from pwb.core.config import settings
from pwb.core.exceptions import RateFetchError
from pwb.models.website import Website

logger = logging.getLogger(__name__)

COMMON_CURRENCIES = ["EUR", "USD", "GBP", "CHF", "AUD", "CAD", "NZD", "SEK", "NOK", "DKK", "PLN", "CZK", "HUF"]

ECB_CACHE_KEY = "ecb:eur_rates"
ECB_CACHE_TTL = 6 * 60 * 60


def parse_ecb_xml(xml_text: str) -> Dict[str, float]:
    """EUR-based rates from the ECB ``eurofxref-daily.xml`` document."""
    root = ET.fromstring(xml_text)
    rates = {"EUR": 1.0}
    for element in root.iter():
        if element.tag.endswith("Cube") and "currency" in element.attrib:
            rates[element.attrib["currency"]] = float(element.attrib["rate"])
    if len(rates) == 1:
        raise ValueError("No rates found in ECB response")
    return rates


def fetch_ecb_rates() -> Dict[str, float]:
    cached = cache_get_json(ECB_CACHE_KEY)
    if cached:
        return cached

    response = requests.get(settings.ECB_RATES_URL, timeout=10)
    response.raise_for_status()
    rates = parse_ecb_xml(response.text)
    cache_set_json(ECB_CACHE_KEY, rates, ECB_CACHE_TTL)
    logger.info(f"Fetched {len(rates) - 1} ECB exchange rates")
    return rates


def build_rates(eur_rates: Dict[str, float], base: str, targets: List[str]) -> Dict[str, float]:
    rates = {}
    for target in targets:
        if target == base:
            continue
        if base not in eur_rates or target not in eur_rates:
            logger.warning(f"Unknown rate for {base}->{target}")
            continue
        # base -> EUR -> target
        rates[target] = round(eur_rates[target] / eur_rates[base], 6)
    return rates


def update_rates(db: Session, website: Website, fetcher=fetch_ecb_rates) -> Dict[str, float]:
    base = website.default_currency or "EUR"
    targets = [c for c in (website.available_currencies or []) if c != base]
    if not targets:
        return {}

    try:
        eur_rates = fetcher()
    except (requests.RequestException, ET.ParseError, ValueError) as e:
        logger.error(f"Failed to update rates for website {website.id}: {e}")
        raise RateFetchError(f"Could not fetch exchange rates: {e}") from e

    rates = build_rates(eur_rates, base, targets)
    website.exchange_rates = rates
    website.exchange_rates_updated_at = datetime.utcnow()
    db.commit()

    logger.info(f"Updated {len(rates)} rates for website {website.id}")
    return rates


def update_all_rates(db: Session, fetcher=fetch_ecb_rates) -> int:
    """Refresh every website that offers more than one currency."""
    count = 0
    for website in db.query(Website).all():
        if not website.available_currencies:
            continue
        try:
            update_rates(db, website, fetcher=fetcher)
            count += 1
        except RateFetchError as e:
            logger.warning(f"Skipping website {website.id}: {e}")
    logger.info(f"Updated rates for {count} websites")
    return count


def get_rate(website: Website, from_currency: str, to_currency: str) -> Optional[float]:
    if from_currency == to_currency:
        return 1.0

    rates = website.exchange_rates or {}
    if not rates:
        return None

    base = website.default_currency or "EUR"
    if from_currency == base:
        rate = rates.get(to_currency)
        return float(rate) if rate is not None else None
    if to_currency == base:
        rate = rates.get(from_currency)
        return 1.0 / float(rate) if rate else None

    from_rate = rates.get(from_currency)
    to_rate = rates.get(to_currency)
    if from_rate and to_rate:
        return float(to_rate) / float(from_rate)
    return None


def convert(cents: Optional[int], from_currency: str, to_currency: str, website: Website) -> Optional[int]:
    if cents is None:
        return None
    if from_currency == to_currency:
        return cents
    rate = get_rate(website, from_currency, to_currency)
    if rate is None:
        return None
    return round(cents * rate)


def rates_stale(website: Website, now: Optional[datetime] = None) -> bool:
    if website.exchange_rates_updated_at is None:
        return True
    now = now or datetime.utcnow()
    return website.exchange_rates_updated_at < now - timedelta(hours=settings.EXCHANGE_RATES_MAX_AGE_HOURS)


def available_ecb_currencies(fetcher=fetch_ecb_rates) -> List[str]:
    try:
        return sorted(fetcher().keys())
    except (requests.RequestException, ET.ParseError, ValueError) as e:
        logger.warning(f"Could not list ECB currencies: {e}")
        return COMMON_CURRENCIES
