from __future__ import annotations

from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional


class DecisionIn(BaseModel):
    """A decision request for the authenticated actor.

    subject is an arbitrary JSON object handed to voters as a mapping.
    """

    attribute: str = Field(min_length=1)
    subject: Optional[Dict[str, Any]] = None


class DecisionOut(BaseModel):
    attribute: str
    granted: bool


class VoteOut(BaseModel):
    voter_id: str
    vote: str
    error: Optional[str] = None


class ExplainOut(BaseModel):
    """Per-voter explanation of a decision."""

    attribute: str
    actor_identity: Optional[Any] = None
    strategy: str
    granted: bool
    grants: int
    denies: int
    abstains: int
    votes: List[VoteOut] = Field(default_factory=list)


class LabelsOut(BaseModel):
    """The actor's granted labels and their hierarchy expansion."""

    identity: Optional[Any] = None
    labels: List[str] = Field(default_factory=list)
    expanded: List[str] = Field(default_factory=list)
