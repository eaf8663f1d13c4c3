from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, Optional, Tuple

from votegate.core.exceptions import VoterError
from votegate.core.security.actor import Actor

from .observability import FaultReporter, LoggingFaultReporter, VoterFault
from .registry import VoterRegistry
from .strategy import DecisionPolicy, decide_votes
from .voter import Voter
from .votes import DecisionReport, Vote, VoteRecord

log = logging.getLogger("votegate.decision")


@dataclass(frozen=True)
class AccessDecisionManager:
    """
    Deterministic access decision manager.

    Security invariants
    - Every voter is consulted, in registration order
    - supports() == False is tallied as ABSTAIN without calling vote()
    - DENY and ABSTAIN outcomes are values (False), never exceptions
    - A failing voter degrades to ABSTAIN and is reported, unless
      degrade_voter_errors is False, in which case VoterError is raised
    - No shared mutable state: safe to call from many threads at once
    """

    voters: Tuple[Voter, ...] = ()
    policy: DecisionPolicy = field(default_factory=DecisionPolicy)
    degrade_voter_errors: bool = True
    fault_reporter: Optional[FaultReporter] = None

    def __post_init__(self) -> None:
        raw = self.voters
        if isinstance(raw, VoterRegistry):
            raw = raw.freeze()

        try:
            voters = tuple(raw)
        except TypeError as e:
            raise TypeError("voters must be an iterable of Voter instances") from e

        for v in voters:
            if not isinstance(v, Voter):
                raise TypeError("voters must contain only Voter instances")

        if not isinstance(self.policy, DecisionPolicy):
            raise TypeError("policy must be a DecisionPolicy instance")

        object.__setattr__(self, "voters", voters)
        if self.fault_reporter is None:
            object.__setattr__(self, "fault_reporter", LoggingFaultReporter())

    def decide(
        self,
        actor: Actor,
        attribute: str,
        subject: Any = None,
        strategy: Any = None,
    ) -> bool:
        return self.explain(actor, attribute, subject, strategy=strategy).granted

    def explain(
        self,
        actor: Actor,
        attribute: str,
        subject: Any = None,
        strategy: Any = None,
    ) -> DecisionReport:
        if not isinstance(actor, Actor):
            raise TypeError("actor must be an Actor instance")

        policy = self.policy if strategy is None else self.policy.with_strategy(strategy)
        records = tuple(self._collect(actor, attribute, subject))
        granted = decide_votes((r.vote for r in records), policy)

        report = DecisionReport(
            attribute=attribute,
            actor_identity=actor.identity,
            strategy=policy.strategy.value,
            granted=granted,
            votes=records,
        )

        log.debug(
            "access_decision",
            extra={
                "attribute": attribute,
                "actor_identity": actor.identity,
                "strategy": report.strategy,
                "granted": granted,
                "grants": report.grants,
                "denies": report.denies,
                "abstains": report.abstains,
            },
        )
        return report

    def _collect(self, actor: Actor, attribute: str, subject: Any) -> Iterable[VoteRecord]:
        for voter in self.voters:
            voter_id = getattr(voter, "voter_id", voter.__class__.__name__)
            try:
                vote = self._ask(voter, actor, attribute, subject)
            except Exception as e:
                if not self.degrade_voter_errors:
                    raise VoterError(voter_id, attribute) from e

                self._report(
                    VoterFault(
                        voter_id=voter_id,
                        attribute=attribute,
                        actor_identity=actor.identity,
                        error=e,
                    )
                )
                yield VoteRecord(voter_id=voter_id, vote=Vote.ABSTAIN, error=e.__class__.__name__)
                continue

            yield VoteRecord(voter_id=voter_id, vote=vote)

    def _report(self, fault: VoterFault) -> None:
        try:
            self.fault_reporter.report(fault)
        except Exception:
            # The vote is already recorded as ABSTAIN; the decision goes on.
            log.exception(
                "fault_reporter_failed",
                extra={"voter_id": fault.voter_id, "attribute": fault.attribute},
            )

    @staticmethod
    def _ask(voter: Voter, actor: Actor, attribute: str, subject: Any) -> Vote:
        if not voter.supports(attribute, subject):
            return Vote.ABSTAIN

        vote = voter.vote(actor, attribute, subject)
        if not isinstance(vote, Vote):
            raise TypeError(f"voter returned {type(vote).__name__}, expected Vote")
        return vote
