from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List, Tuple

from votegate.core.exceptions import ConfigurationError

from .voter import Voter


@dataclass
class VoterRegistry:
    """
    Startup-time builder for the ordered voter list.

    Registration order is evaluation order. Once freeze() is called the
    registry is sealed; the decision path only ever sees the returned tuple.

    - register: O(n) for the duplicate id check
    - freeze: O(n)
    """

    _voters: List[Voter] = field(default_factory=list, init=False, repr=False)
    _frozen: bool = field(default=False, init=False)

    @classmethod
    def of(cls, voters: Iterable[Voter]) -> "VoterRegistry":
        reg = cls()
        for v in voters:
            reg.register(v)
        return reg

    def register(self, voter: Voter) -> None:
        if self._frozen:
            raise ConfigurationError("voter registry is frozen")
        if not isinstance(voter, Voter):
            raise ConfigurationError("voter must be a Voter instance")

        vid = getattr(voter, "voter_id", None)
        if not isinstance(vid, str) or not vid:
            raise ConfigurationError("voter must declare a non-empty voter_id")
        if any(v.voter_id == vid for v in self._voters):
            raise ConfigurationError(f"Duplicate voter_id: {vid}")

        self._voters.append(voter)

    @property
    def frozen(self) -> bool:
        return self._frozen

    def freeze(self) -> Tuple[Voter, ...]:
        self._frozen = True
        return tuple(self._voters)

    def list_voters(self) -> List[Voter]:
        # Return a copy to prevent external mutation
        return list(self._voters)
