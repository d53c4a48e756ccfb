"""
Persistence layer for recorded flows.

This package provides storage for the flow collection,
with a JSON-file implementation behind an abstract interface.
"""

from .flow_store import FlowStore, JSONFlowStore

__all__ = ['FlowStore', 'JSONFlowStore']
