"""
Flow name matching.

Resolves a loosely typed flow name ("@star", "draw a star") to a stored flow.
"""

from typing import List, Optional

import flow_config
from flow_models import Flow


def find_by_name(flows: List[Flow], query: str) -> Optional[Flow]:
    """
    Resolve a name, case-insensitively, trying in order:

    1. exact name
    2. name starting with the query
    3. name containing the query (queries of 3+ characters only)
    4. name contained in the query; the longest such name wins,
       ties go to store order
    """
    search = query.strip().lower()

    for flow in flows:
        if flow.name.lower() == search:
            return flow

    for flow in flows:
        if flow.name.lower().startswith(search):
            return flow

    if len(search) >= flow_config.MIN_CONTAINS_QUERY:
        for flow in flows:
            if search in flow.name.lower():
                return flow

    best = None
    for flow in flows:
        if flow.name.lower() in search:
            if best is None or len(flow.name) > len(best.name):
                best = flow
    return best


def find_all_by_name(flows: List[Flow], query: str) -> List[Flow]:
    """Every flow whose name contains the query or is contained in it."""
    search = query.strip().lower()
    return [
        f for f in flows
        if search in f.name.lower() or f.name.lower() in search
    ]
