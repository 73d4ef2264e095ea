"""
Aggregator.

Folds Records into one Aggregate per vehicle and ranks them.
"""

from typing import Dict, Iterable, List, Optional

from telematics.models import Aggregate, RankedList, Record

SORT_KEYS = ('count', 'duration')
DEFAULT_TOP_N = 10


def _sort_value(item: Aggregate, sort_key: str) -> int:
    if sort_key == 'count':
        return item.count
    return item.total_duration_seconds


def aggregate(
    records: Iterable[Record],
    sort_key: str = 'count',
    top_n: Optional[int] = DEFAULT_TOP_N,
) -> RankedList:
    """
    Group records by vehicle and rank the groups.

    Grouping is on the exact trimmed vehicle_id: plate formats vary too much to
    normalize case or punctuation without merging distinct vehicles.

    Args:
        records: Records of a single report kind
        sort_key: 'count' or 'duration' (summed seconds), ranked descending
        top_n: Maximum number of aggregates kept; None keeps all

    Returns:
        Tuple of Aggregates; ties keep first-encountered order. Empty input
        gives an empty tuple.
    """
    if sort_key not in SORT_KEYS:
        raise ValueError(f"Unknown sort key: {sort_key} (expected one of {SORT_KEYS})")

    groups: Dict[str, Dict] = {}
    for record in records:
        key = record.vehicle_id.strip()
        group = groups.get(key)
        if group is None:
            group = {'vehicle_id': key, 'count': 0, 'total_duration_seconds': 0, 'last_station': None}
            groups[key] = group
        group['count'] += 1
        group['total_duration_seconds'] += record.duration_seconds
        if record.station:
            group['last_station'] = record.station

    # dicts keep insertion order and sorted() is stable, so ties stay in first-seen order
    aggregates: List[Aggregate] = [Aggregate(**g) for g in groups.values()]
    ranked = sorted(aggregates, key=lambda a: _sort_value(a, sort_key), reverse=True)

    if top_n is not None:
        ranked = ranked[:max(top_n, 0)]
    return tuple(ranked)
