"""Rank parking facilities by predicted fee for a stay."""

from dataclasses import dataclass
from typing import Iterable

from ..daytype import DayTypeResolver, weekend_day_type
from ..fees.calculator import calculate_fee
from ..fees.segmenter import DEFAULT_MATCHING_POLICY, MatchingPolicy
from ..hours import is_open_for_stay
from ..models import Facility, FeeResult, StayInterval, is_unavailable


@dataclass
class RankedFacility:
    """A facility with its predicted fee and position in the ranking."""

    facility: Facility
    fee: FeeResult
    is_open: bool
    rank: int = 0

    @property
    def fee_available(self) -> bool:
        return not is_unavailable(self.fee)


def _sort_key(item: RankedFacility) -> tuple:
    # UNAVAILABLE always sorts after every numeric fee
    if is_unavailable(item.fee):
        return (1, 0, item.facility.name)
    return (0, item.fee, item.facility.name)


def rank_facilities(
    facilities: Iterable[Facility],
    interval: StayInterval,
    *,
    require_open: bool = False,
    exclude_unavailable: bool = False,
    resolver: DayTypeResolver = weekend_day_type,
    policy: MatchingPolicy = DEFAULT_MATCHING_POLICY,
) -> list[RankedFacility]:
    """Rank facilities from cheapest to most expensive for a stay.

    Facilities whose fee is UNAVAILABLE are kept at the end of the list
    unless exclude_unavailable is set.
    """
    ranked = []
    for facility in facilities:
        is_open = is_open_for_stay(facility.hours, interval)
        if require_open and not is_open:
            continue
        fee = calculate_fee(facility.rules, interval, resolver, policy)
        if exclude_unavailable and is_unavailable(fee):
            continue
        ranked.append(RankedFacility(facility=facility, fee=fee, is_open=is_open))

    ranked.sort(key=_sort_key)
    for position, item in enumerate(ranked, start=1):
        item.rank = position
    return ranked


def to_dict(item: RankedFacility) -> dict:
    """JSON-friendly view of a ranking entry."""
    return {
        "rank": item.rank,
        "id": item.facility.id,
        "name": item.facility.name,
        "fee": None if is_unavailable(item.fee) else item.fee,
        "fee_available": item.fee_available,
        "open_for_stay": item.is_open,
    }
