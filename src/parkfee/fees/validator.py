"""Final sanity pass over a raw fee total."""

import logging

from ..models import UNAVAILABLE, FeeResult, RateRule, RateRuleSet, RuleKind

logger = logging.getLogger(__name__)


def authorizes_zero_charge(rule: RateRule) -> bool:
    """Whether a rule explicitly allows a stay to cost nothing."""
    if rule.kind is RuleKind.BASE:
        return rule.unit_price == 0 or (rule.apply_after or 0) > 0
    elif rule.kind is RuleKind.MAX:
        return rule.unit_price == 0
    elif rule.kind is RuleKind.PROGRESSIVE:
        return (rule.apply_after or 0) > 0
    elif rule.kind is RuleKind.CONDITIONAL_FREE:
        return False
    raise ValueError(f"Unhandled rule kind: {rule.kind}")


def validate_fee(raw_total: int, rules: RateRuleSet) -> FeeResult:
    """Turn a raw total into a fee result.

    A zero total is only trusted when some rule explicitly authorizes it;
    otherwise it usually means malformed data, e.g. a priced base rule
    with zero unit minutes.
    """
    if raw_total > 0:
        return raw_total
    if any(authorizes_zero_charge(r) for r in rules):
        return 0
    logger.debug("Zero total without a rule authorizing it; fee unavailable")
    return UNAVAILABLE
