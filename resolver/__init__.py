"""
Transaction resolution.

Resolves raw transactions by id, optionally out of a known block, through a
last-block memo, a JSON cache store and a chain client.
"""

from .engine import Resolver
from .memo import LastBlockMemo, MemoEntry
from .models import CacheKind, LookupRequest, ResolvedTransaction
from .service import ResolverService, build_resolver

__all__ = [
    'Resolver',
    'LastBlockMemo',
    'MemoEntry',
    'CacheKind',
    'LookupRequest',
    'ResolvedTransaction',
    'ResolverService',
    'build_resolver'
]
