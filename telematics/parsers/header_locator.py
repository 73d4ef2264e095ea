"""
Header Locator.

Dashboard exports prepend a variable number of title/metadata rows before the
real column header. The header row is the first one with a cell containing the
marker token (Thai "ลำดับ", sequence number column).
"""

import logging
from typing import Iterable, Optional, Union

from telematics.models import RawTable

logger = logging.getLogger(__name__)

DEFAULT_MARKERS = ('ลำดับ',)
DEFAULT_SEARCH_WINDOW = 20


def locate_header_row(
    table: RawTable,
    marker: Union[str, Iterable[str]] = DEFAULT_MARKERS,
    search_window: int = DEFAULT_SEARCH_WINDOW,
) -> Optional[int]:
    """
    Find the header row index.

    Args:
        table: Loaded table
        marker: Marker substring, or several known variants of it
        search_window: Number of rows scanned from the top

    Returns:
        Zero-based index of the header row, or None if no row in the window
        carries the marker. Data rows are the ones strictly after it.
    """
    markers = (marker,) if isinstance(marker, str) else tuple(marker)
    markers = tuple(m for m in markers if m)
    if not markers:
        return None

    for idx, row in enumerate(table[:max(search_window, 0)]):
        if any(m in cell for cell in row for m in markers):
            return idx

    logger.debug(f"Header marker {markers} not found in first {search_window} rows")
    return None
