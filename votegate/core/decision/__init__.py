"""Access decision engine: voters, strategies, manager and facade."""

from .builtin_voters import (
    IS_ANONYMOUS,
    IS_AUTHENTICATED,
    PUBLIC_ACCESS,
    AuthenticatedVoter,
    OwnerVoter,
)
from .config import (
    EngineConfig,
    build_checker,
    load_engine_config,
    load_engine_config_from_env,
)
from .facade import AuthorizationChecker
from .label_voter import AbsentLabelPolicy, LabelVoter
from .manager import AccessDecisionManager
from .observability import (
    CollectingFaultReporter,
    FaultReporter,
    LoggingFaultReporter,
    VoterFault,
)
from .registry import VoterRegistry
from .strategy import DecisionPolicy, Strategy, decide_votes
from .voter import AttributeVoter, CallableVoter, Voter
from .votes import DecisionReport, Vote, VoteRecord

__all__ = [
    "IS_ANONYMOUS",
    "IS_AUTHENTICATED",
    "PUBLIC_ACCESS",
    "AbsentLabelPolicy",
    "AccessDecisionManager",
    "AttributeVoter",
    "AuthenticatedVoter",
    "AuthorizationChecker",
    "CallableVoter",
    "CollectingFaultReporter",
    "DecisionPolicy",
    "DecisionReport",
    "EngineConfig",
    "FaultReporter",
    "LabelVoter",
    "LoggingFaultReporter",
    "OwnerVoter",
    "Strategy",
    "Vote",
    "VoteRecord",
    "Voter",
    "VoterFault",
    "VoterRegistry",
    "build_checker",
    "decide_votes",
    "load_engine_config",
    "load_engine_config_from_env",
]
