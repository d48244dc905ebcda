"""
Public surface of the local cache.

Callers should import LocalStore from here rather than from the submodule.
"""

from .local_store import LocalStore

__all__ = [
    "LocalStore",
]
