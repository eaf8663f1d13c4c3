from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Tuple


class Vote(str, Enum):
    """
    Three-valued voter outcome.

    ABSTAIN ("no opinion") is kept distinct from DENY ("actively refuses").
    Using str Enum ensures stable serialization and safe comparisons.
    """

    GRANT = "GRANT"
    DENY = "DENY"
    ABSTAIN = "ABSTAIN"


@dataclass(frozen=True)
class VoteRecord:
    """One voter's contribution to a decision.

    error holds the exception class name when the voter malfunctioned and its
    vote was degraded to ABSTAIN.
    """

    voter_id: str
    vote: Vote
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "voter_id": self.voter_id,
            "vote": self.vote.value,
            "error": self.error,
        }


@dataclass(frozen=True)
class DecisionReport:
    """
    Immutable explanation of one decision.

    Security invariants
    - Frozen dataclass prevents post-hoc tampering
    - votes are in voter registration order
    - to_dict returns JSON-safe primitives (the subject is never included)
    """

    attribute: str
    actor_identity: Any
    strategy: str
    granted: bool
    votes: Tuple[VoteRecord, ...] = ()

    @property
    def grants(self) -> int:
        return sum(1 for r in self.votes if r.vote == Vote.GRANT)

    @property
    def denies(self) -> int:
        return sum(1 for r in self.votes if r.vote == Vote.DENY)

    @property
    def abstains(self) -> int:
        return sum(1 for r in self.votes if r.vote == Vote.ABSTAIN)

    def to_dict(self) -> Dict[str, Any]:
        identity = self.actor_identity
        if identity is not None and not isinstance(identity, (str, int)):
            identity = str(identity)

        return {
            "attribute": self.attribute,
            "actor_identity": identity,
            "strategy": self.strategy,
            "granted": self.granted,
            "grants": self.grants,
            "denies": self.denies,
            "abstains": self.abstains,
            "votes": [r.to_dict() for r in self.votes],
        }
