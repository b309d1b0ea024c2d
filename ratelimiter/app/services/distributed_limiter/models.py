"""Data models for distributed rate limiting."""

from dataclasses import dataclass
from typing import Mapping, Union

from ratelimiter.app.limiters.models import TokenBucketState

_Field = Union[str, bytes]


@dataclass
class BucketRecord:
    """Token bucket record as persisted in the shared store.
    
    Attributes:
        tokens: Tokens left in the bucket
        last_refill: Epoch seconds of the last refill
    """
    tokens: float
    last_refill: float
    
    @classmethod
    def fresh(cls, capacity: int, now: float) -> "BucketRecord":
        return cls(tokens=float(capacity), last_refill=now)
    
    def to_mapping(self) -> dict:
        """Convert to the hash fields stored in Redis (decimal strings)."""
        return {
            "tokens": repr(float(self.tokens)),
            "last_refill": repr(float(self.last_refill)),
        }
    
    @classmethod
    def from_mapping(cls, data: Mapping[_Field, _Field]) -> "BucketRecord":
        """Create from hash fields, accepting str or bytes keys and values."""
        fields = {
            (k.decode() if isinstance(k, bytes) else k): (v.decode() if isinstance(v, bytes) else v)
            for k, v in data.items()
        }
        return cls(
            tokens=float(fields["tokens"]),
            last_refill=float(fields["last_refill"]),
        )
    
    def consume(self, capacity: int, rate: float, now: float) -> bool:
        """Apply one token bucket check to this record in place."""
        state = TokenBucketState(tokens=self.tokens, last_refill=self.last_refill)
        state.refill(now, float(capacity), rate)
        allowed = state.try_consume()
        self.tokens = state.tokens
        self.last_refill = state.last_refill
        return allowed
