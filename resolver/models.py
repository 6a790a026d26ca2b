from enum import Enum
from typing import Optional

from pydantic import BaseModel


class CacheKind(str, Enum):
    NONE = "none"
    STORE = "store"


class LookupRequest(BaseModel):
    """A request to resolve one transaction, optionally scoped to a block.

    Required fields are optional here so that an absent or null value is
    reported by resolution as an InvalidArgument rather than a model
    validation error.
    """

    id: Optional[str] = None
    network: Optional[str] = None
    block: Optional[str] = None
    cache: CacheKind = CacheKind.STORE


class ResolvedTransaction(BaseModel):
    transaction: str
