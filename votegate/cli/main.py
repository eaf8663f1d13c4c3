from __future__ import annotations

import argparse
import json
import sys
from dataclasses import replace
from typing import Any, List, Optional

from votegate.core.decision.config import (
    EngineConfig,
    build_checker,
    load_engine_config,
    load_engine_config_from_env,
)
from votegate.core.decision.strategy import Strategy
from votegate.core.exceptions import ConfigurationError
from votegate.core.security.actor import Actor

EXIT_GRANTED = 0
EXIT_DENIED = 1
EXIT_ERROR = 2


def _load_config(path: Optional[str]) -> EngineConfig:
    if path:
        return load_engine_config(path)
    return load_engine_config_from_env()


def _actor_from_args(args: argparse.Namespace) -> Actor:
    labels: List[str] = []
    for raw in args.label or []:
        labels.extend(x.strip() for x in raw.split(",") if x.strip())
    return Actor.create(args.identity, labels)


def _subject_from_args(args: argparse.Namespace) -> Any:
    if not args.subject:
        return None
    subject = json.loads(args.subject)
    if not isinstance(subject, dict):
        raise ValueError("--subject must be a JSON object")
    return subject


def _build(args: argparse.Namespace):
    cfg = _load_config(args.config)
    if getattr(args, "strategy", None):
        cfg = replace(cfg, strategy=Strategy.parse(args.strategy))
    return build_checker(cfg)


def cmd_check(args: argparse.Namespace) -> int:
    """Decide one attribute. Exit 0 when granted, 1 when denied."""

    checker = _build(args)
    actor = _actor_from_args(args)
    granted = checker.is_granted(actor, args.attribute, _subject_from_args(args))
    print("GRANTED" if granted else "DENIED")
    return EXIT_GRANTED if granted else EXIT_DENIED


def cmd_explain(args: argparse.Namespace) -> int:
    """Print the per-voter report as JSON."""

    checker = _build(args)
    actor = _actor_from_args(args)
    report = checker.explain(actor, args.attribute, _subject_from_args(args))
    print(json.dumps(report.to_dict(), indent=2, sort_keys=True))
    return EXIT_GRANTED if report.granted else EXIT_DENIED


def cmd_expand(args: argparse.Namespace) -> int:
    """Print the hierarchy expansion of the given labels."""

    cfg = _load_config(args.config)
    actor = _actor_from_args(args)
    expanded = cfg.label_hierarchy.expand(actor.labels)
    print(json.dumps(sorted(expanded), indent=2))
    return 0


def cmd_serve(args: argparse.Namespace) -> int:
    """Run the votegate API server.

    Security notes:
    - If VOTEGATE_API_KEYS is set, requests must provide X-Votegate-Api-Key.
    - Bind to 127.0.0.1 by default (safer than 0.0.0.0).

    """

    try:
        import uvicorn
    except ImportError as e:
        print(f"error: uvicorn is required to serve the API: {e}", file=sys.stderr)
        return EXIT_ERROR

    from votegate.api.server import create_app

    app = create_app(config_path=args.config)
    uvicorn.run(app, host=args.host, port=int(args.port), log_level=args.log_level)
    return 0


def _add_decision_args(p: argparse.ArgumentParser, *, attribute: bool = True) -> None:
    p.add_argument("--config", help="Engine config file (defaults to $VOTEGATE_CONFIG)")
    p.add_argument("--identity", default=None, help="Actor identity (omit for anonymous)")
    p.add_argument(
        "--label",
        action="append",
        help="Granted label; repeat or comma-separate for several",
    )
    if attribute:
        p.add_argument("--attribute", required=True, help="Attribute to decide")
        p.add_argument("--subject", help="Subject as a JSON object")
        p.add_argument(
            "--strategy",
            choices=["affirmative", "consensus", "unanimous"],
            help="Override the configured strategy",
        )


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="votegate", description="Voter-based authorization engine")
    sub = p.add_subparsers(dest="cmd", required=True)

    ck = sub.add_parser("check", help="Decide whether an actor is granted an attribute")
    _add_decision_args(ck)
    ck.set_defaults(func=cmd_check)

    ex = sub.add_parser("explain", help="Show how every voter voted")
    _add_decision_args(ex)
    ex.set_defaults(func=cmd_explain)

    ep = sub.add_parser("expand", help="Expand labels through the label hierarchy")
    _add_decision_args(ep, attribute=False)
    ep.set_defaults(func=cmd_expand)

    sv = sub.add_parser("serve", help="Run the votegate FastAPI server")
    sv.add_argument("--config", help="Engine config file (defaults to $VOTEGATE_CONFIG)")
    sv.add_argument("--host", default="127.0.0.1")
    sv.add_argument("--port", default=8080, type=int)
    sv.add_argument("--log-level", default="info")
    sv.set_defaults(func=cmd_serve)

    return p


def main(argv: List[str] | None = None) -> int:
    """CLI entry."""
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        return int(args.func(args))
    except (ConfigurationError, OSError, ValueError) as e:
        print(f"error: {e}", file=sys.stderr)
        return EXIT_ERROR


if __name__ == "__main__":
    raise SystemExit(main())
