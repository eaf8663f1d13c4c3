from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Optional

from fastapi import Depends, FastAPI, Header, HTTPException
from starlette.requests import Request

from votegate.api.auth import authenticate, load_auth_config, requires_auth
from votegate.api.guards import require_granted
from votegate.api.middleware import DecisionLogMiddleware, record_decision
from votegate.api.models import DecisionIn, DecisionOut, ExplainOut, LabelsOut
from votegate.core.decision.config import EngineConfig, build_checker, load_engine_config
from votegate.core.decision.facade import AuthorizationChecker
from votegate.core.decision.voter import Voter
from votegate.core.security.actor import Actor

log = logging.getLogger("votegate.api")


@dataclass(frozen=True, slots=True)
class ServiceConfig:
    """Configuration for the API service.

    Security notes:
    - explain_attribute gates /decisions/explain, which reveals how each
      voter voted.

    """

    config_path: Optional[str] = None
    explain_attribute: str = "ROLE_AUDITOR"


def create_app(
    *,
    config_path: Optional[str] = None,
    voters: Iterable[Voter] = (),
    checker: Optional[AuthorizationChecker] = None,
) -> FastAPI:
    """Create the FastAPI app.

    The checker is built once here; every request reuses it read-only.
    """

    cfg = ServiceConfig(
        config_path=config_path or (os.environ.get("VOTEGATE_CONFIG") or None),
        explain_attribute=os.environ.get("VOTEGATE_EXPLAIN_ATTRIBUTE", "ROLE_AUDITOR"),
    )
    mapping = load_auth_config()
    must_auth = requires_auth(mapping)

    # Logging: safe defaults (no request bodies), can be configured by host app.
    log.setLevel(os.environ.get("VOTEGATE_LOG_LEVEL", "INFO").upper())

    if checker is None:
        engine_cfg = load_engine_config(cfg.config_path) if cfg.config_path else EngineConfig()
        checker = build_checker(engine_cfg, voters)

    app = FastAPI(title="votegate API", version="0.1")

    app.state.cfg = cfg
    app.state.must_auth = must_auth
    app.state.checker = checker

    app.add_middleware(DecisionLogMiddleware)

    def get_actor(
        request: Request,
        x_votegate_api_key: Optional[str] = Header(default=None),
    ) -> Actor:
        """Authenticate request.

        Security notes:
        - If auth is required and missing/invalid, fail closed (401).

        """

        if not must_auth:
            actor = Actor.anonymous()
        else:
            actor = authenticate(x_votegate_api_key, mapping)
            if actor is None:
                raise HTTPException(status_code=401, detail="unauthorized")

        # Attach actor for downstream middleware/logging.
        request.state.actor_identity = actor.identity
        return actor

    @app.get("/health")
    def health() -> Dict[str, Any]:
        return {
            "ok": True,
            "auth_required": must_auth,
            "strategy": checker.manager.policy.strategy.value,
            "voters": [v.voter_id for v in checker.manager.voters],
        }

    @app.get("/me/labels", response_model=LabelsOut)
    def my_labels(actor: Actor = Depends(get_actor)) -> LabelsOut:
        return LabelsOut(
            identity=actor.identity,
            labels=sorted(actor.labels),
            expanded=sorted(checker.expanded_labels(actor)),
        )

    @app.post("/decisions", response_model=DecisionOut)
    def decide(
        body: DecisionIn, request: Request, actor: Actor = Depends(get_actor)
    ) -> DecisionOut:
        """Decide one attribute for the authenticated actor.

        A denied decision is a 200 with granted=false, not an error.
        """

        granted = checker.is_granted(actor, body.attribute, body.subject)
        record_decision(request, body.attribute, granted)
        return DecisionOut(attribute=body.attribute, granted=granted)

    @app.post("/decisions/explain", response_model=ExplainOut)
    def explain(
        body: DecisionIn, request: Request, actor: Actor = Depends(get_actor)
    ) -> ExplainOut:
        """Per-voter breakdown of a decision.

        Requires cfg.explain_attribute to be granted (403 otherwise).
        """

        require_granted(checker, actor, cfg.explain_attribute)
        report = checker.explain(actor, body.attribute, body.subject)
        record_decision(request, body.attribute, report.granted)
        return ExplainOut(**report.to_dict())

    return app
