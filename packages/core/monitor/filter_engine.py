"""
Device acceptance policy based on user supplied regular expressions.

A device is accepted when its identifier matches any configured pattern,
case-insensitively. With no patterns configured every device is accepted.
"""

from __future__ import annotations

import logging
import re
from typing import Callable, Iterable, List, Optional

log = logging.getLogger(__name__)

InvalidPatternCallback = Callable[[str, re.error], None]


def parse_filter_text(text: Optional[str]) -> List[str]:
    """Split raw filter text into patterns, one per line, dropping blank lines."""
    if not text:
        return []
    return [line.strip() for line in text.splitlines() if line.strip()]


def accepts(
    device_id: Optional[str],
    patterns: Iterable[str],
    on_invalid: Optional[InvalidPatternCallback] = None,
) -> bool:
    """
    Decide whether an arrived device should trigger a restart.

    Args:
        device_id: Identifier of the device; may be empty when the OS did not
            report one, in which case no pattern can match.
        patterns: Regular expressions, OR-ed together. Blank entries are ignored.
        on_invalid: Called once for each pattern that fails to compile.
            Evaluation continues with the remaining patterns.

    Returns:
        True if any pattern matches, or if there are no usable patterns.
    """
    active = [p for p in patterns if p and p.strip()]
    if not active:
        return True

    if not device_id:
        return False

    for pattern in active:
        try:
            if re.search(pattern, device_id, re.IGNORECASE):
                return True
        except re.error as e:
            log.warning(f"Invalid filter pattern '{pattern}': {e}")
            if on_invalid:
                on_invalid(pattern, e)
    return False
