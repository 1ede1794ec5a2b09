"""Identity admission policy.

A vehicle is *admitted* when its identifier carries the ``SD-`` prefix
followed by ``B``. Everything else, including non-string input, is
*restricted*. Classification never raises.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from dronewatch._constants import ADMITTED_MARKER, ADMITTED_PREFIX


def is_admitted(identifier: Any) -> bool:
    if not isinstance(identifier, str) or not identifier:
        return False
    if not identifier.startswith(ADMITTED_PREFIX):
        return False
    marker_index = len(ADMITTED_PREFIX)
    return identifier[marker_index : marker_index + 1] == ADMITTED_MARKER


def restricted_count(snapshot: Mapping[str, Any]) -> int:
    """Number of vehicles in *snapshot* that are not admitted.

    Reads the classification stamped on each state by the store, so a custom
    store policy is honoured. Values without one count as restricted.
    """
    return sum(1 for state in snapshot.values() if getattr(state, "admitted", False) is not True)
