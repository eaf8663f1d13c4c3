from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, List

log = logging.getLogger("votegate.decision")


@dataclass(frozen=True)
class VoterFault:
    """A voter that raised while voting; its vote counted as ABSTAIN.

    Security notes:
    - Carries the exception, never the subject, so reports do not leak
      domain objects into logs.
    """

    voter_id: str
    attribute: str
    actor_identity: Any
    error: BaseException

    @property
    def error_type(self) -> str:
        return self.error.__class__.__name__


class FaultReporter:
    """Receives voter faults.

    Implementations should not raise; if one does, the manager logs the
    failure and the decision still completes.
    """

    def report(self, fault: VoterFault) -> None:
        raise NotImplementedError


class LoggingFaultReporter(FaultReporter):
    """Default reporter: one WARNING per fault with structured fields."""

    def __init__(self, logger: logging.Logger = log):
        self._log = logger

    def report(self, fault: VoterFault) -> None:
        self._log.warning(
            "voter_fault",
            extra={
                "voter_id": fault.voter_id,
                "attribute": fault.attribute,
                "actor_identity": fault.actor_identity,
                "error_type": fault.error_type,
            },
            exc_info=(type(fault.error), fault.error, fault.error.__traceback__),
        )


class CollectingFaultReporter(FaultReporter):
    """Keeps faults in memory. Meant for tests and diagnostics tooling."""

    def __init__(self) -> None:
        self.faults: List[VoterFault] = []

    def report(self, fault: VoterFault) -> None:
        self.faults.append(fault)
