"""Anomaly clamping for ingested rate tables.

OCR'd or scraped rate tables sometimes carry implausible prices: a base
price with an extra digit, or a maximum lower than the base price it is
supposed to cap. This stage repairs those before the rules are stored.
It is applied only on ingestion, never by the fee calculator.
"""

import logging
from dataclasses import replace

from ..models import Facility, RateRuleSet, RuleKind

logger = logging.getLogger(__name__)

BASE_PRICE_ANOMALY_THRESHOLD = 10000  # yen; no base unit costs this much
BASE_PRICE_CEILING = 1000  # yen
MAX_TO_BASE_MULTIPLE = 8


def clamp_anomalous_rates(rules: RateRuleSet) -> RateRuleSet:
    """Return a copy of a rule set with anomalous prices clamped."""
    clamped = []
    for rule in rules:
        if (
            rule.kind is RuleKind.BASE
            and rule.unit_price is not None
            and rule.unit_price > BASE_PRICE_ANOMALY_THRESHOLD
        ):
            logger.info("Clamping base price %d to %d", rule.unit_price, BASE_PRICE_CEILING)
            rule = replace(rule, unit_price=BASE_PRICE_CEILING)
        clamped.append(rule)

    base_price = next(
        (r.unit_price for r in clamped if r.kind is RuleKind.BASE and r.unit_price is not None),
        None,
    )
    if base_price is None:
        return tuple(clamped)

    result = []
    for rule in clamped:
        if rule.kind is RuleKind.MAX and rule.unit_price is not None and rule.unit_price < base_price:
            raised = base_price * MAX_TO_BASE_MULTIPLE
            logger.info("Raising max price %d below base %d to %d", rule.unit_price, base_price, raised)
            rule = replace(rule, unit_price=raised)
        result.append(rule)
    return tuple(result)


def clamp_facility(facility: Facility) -> Facility:
    return replace(facility, rules=clamp_anomalous_rates(facility.rules))
