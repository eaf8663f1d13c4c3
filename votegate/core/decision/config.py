from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from votegate.core.exceptions import ConfigurationError
from votegate.core.security.labels import LabelHierarchy

from .builtin_voters import AuthenticatedVoter
from .facade import AuthorizationChecker
from .label_voter import AbsentLabelPolicy, LabelVoter
from .manager import AccessDecisionManager
from .observability import FaultReporter
from .registry import VoterRegistry
from .strategy import DecisionPolicy, Strategy
from .voter import Voter

CONFIG_ENV_VAR = "VOTEGATE_CONFIG"

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}

_TOP_LEVEL_KEYS = frozenset({"decision", "label_voter", "voters", "label_hierarchy"})
_SECTION_KEYS = {
    "decision": frozenset(
        {
            "strategy",
            "allow_if_all_abstain",
            "allow_if_equal_granted_denied",
            "degrade_voter_errors",
        }
    ),
    "label_voter": frozenset({"prefix", "absent_label"}),
    "voters": frozenset({"authenticated"}),
}


@dataclass(frozen=True)
class EngineConfig:
    """Process-wide engine configuration, built once at startup.

    Supported schema (YAML/JSON)

    decision:
      strategy: affirmative | consensus | unanimous
      allow_if_all_abstain: false
      allow_if_equal_granted_denied: false
      degrade_voter_errors: true
    label_voter:
      prefix: ROLE_
      absent_label: deny | abstain
    voters:
      authenticated: true
    label_hierarchy:
      ROLE_ADMIN:
        - ROLE_MODERATOR
      ROLE_MODERATOR: [ROLE_USER]

    Security notes:
    - Treat config files as trusted configuration.
    - The hierarchy is validated (and cycles rejected) when the config is
      built, never at decision time.
    """

    strategy: Strategy = Strategy.AFFIRMATIVE
    allow_if_all_abstain: bool = False
    allow_if_equal_granted_denied: bool = False
    degrade_voter_errors: bool = True
    label_prefix: str = "ROLE_"
    absent_label: AbsentLabelPolicy = AbsentLabelPolicy.DENY
    authenticated_voter: bool = True
    label_hierarchy: LabelHierarchy = field(default_factory=LabelHierarchy.empty)

    def __post_init__(self) -> None:
        object.__setattr__(self, "strategy", Strategy.parse(self.strategy))
        object.__setattr__(self, "absent_label", AbsentLabelPolicy.parse(self.absent_label))

        for name in (
            "allow_if_all_abstain",
            "allow_if_equal_granted_denied",
            "degrade_voter_errors",
            "authenticated_voter",
        ):
            if not isinstance(getattr(self, name), bool):
                raise ConfigurationError(f"{name} must be a bool")

        if not isinstance(self.label_prefix, str):
            raise ConfigurationError("label_prefix must be a string")

        hierarchy = self.label_hierarchy
        if not isinstance(hierarchy, LabelHierarchy):
            # Anything but a mapping is rejected by build().
            hierarchy = LabelHierarchy.build(hierarchy)
            object.__setattr__(self, "label_hierarchy", hierarchy)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "EngineConfig":
        if not isinstance(data, Mapping):
            raise ConfigurationError("engine config must be a mapping")

        _reject_unknown(data, _TOP_LEVEL_KEYS, "engine config")

        decision = _section(data, "decision")
        label_voter = _section(data, "label_voter")
        voters = _section(data, "voters")

        prefix = label_voter.get("prefix", "ROLE_")
        if prefix is None:
            prefix = ""
        if not isinstance(prefix, str):
            raise ConfigurationError("label_voter.prefix must be a string")

        # A bare "label_hierarchy:" key parses as None and means no hierarchy.
        hierarchy_raw = data.get("label_hierarchy")
        hierarchy = (
            LabelHierarchy.build(hierarchy_raw)
            if hierarchy_raw is not None
            else LabelHierarchy.empty()
        )

        return cls(
            strategy=Strategy.parse(decision.get("strategy", Strategy.AFFIRMATIVE)),
            allow_if_all_abstain=_as_bool(
                decision.get("allow_if_all_abstain", False), "decision.allow_if_all_abstain"
            ),
            allow_if_equal_granted_denied=_as_bool(
                decision.get("allow_if_equal_granted_denied", False),
                "decision.allow_if_equal_granted_denied",
            ),
            degrade_voter_errors=_as_bool(
                decision.get("degrade_voter_errors", True), "decision.degrade_voter_errors"
            ),
            label_prefix=prefix,
            absent_label=AbsentLabelPolicy.parse(label_voter.get("absent_label", "deny")),
            authenticated_voter=_as_bool(voters.get("authenticated", True), "voters.authenticated"),
            label_hierarchy=hierarchy,
        )

    def decision_policy(self) -> DecisionPolicy:
        return DecisionPolicy(
            strategy=self.strategy,
            allow_if_all_abstain=self.allow_if_all_abstain,
            allow_if_equal_granted_denied=self.allow_if_equal_granted_denied,
        )


def _section(data: Mapping[str, Any], name: str) -> Mapping[str, Any]:
    value = data.get(name)
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise ConfigurationError(f"{name} must be a mapping")
    _reject_unknown(value, _SECTION_KEYS[name], name)
    return value


def _reject_unknown(data: Mapping[str, Any], allowed: frozenset, where: str) -> None:
    unknown = sorted(str(k) for k in data if k not in allowed)
    if unknown:
        raise ConfigurationError(f"unknown key(s) in {where}: {', '.join(unknown)}")


def _as_bool(value: Any, name: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        v = value.strip().lower()
        if v in _TRUE:
            return True
        if v in _FALSE:
            return False
    raise ConfigurationError(f"{name} must be a boolean, got {value!r}")


def _strip_comment(line: str) -> str:
    # Labels never contain '#', so no quote tracking is needed.
    if "#" in line:
        return line.split("#", 1)[0].rstrip()
    return line.rstrip()


def _unquote(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in {'"', "'"}:
        return value[1:-1]
    return value


def _parse_scalar(raw: str) -> Any:
    if raw == "[]":
        return []
    if raw == "{}":
        return {}
    if raw.startswith("[") and raw.endswith("]"):
        return [_unquote(x.strip()) for x in raw[1:-1].split(",") if x.strip()]
    return _unquote(raw)


def _parse_minimal_yaml(text: str) -> Dict[str, Any]:
    """Parse the YAML subset used by engine config files.

    Supports:
    - Nested mappings by indentation (any consistent width)
    - Block lists ("- item") and inline lists ("[a, b]")
    - Scalar strings (booleans are interpreted by EngineConfig)
    - A key with no value and no nested block parses as None

    This is not a general YAML parser.

    Time:  O(n)
    Space: O(n)
    """

    lines: List[Tuple[int, str]] = []
    for ln in text.splitlines():
        ln = _strip_comment(ln)
        if not ln.strip():
            continue
        if "\t" in ln[: len(ln) - len(ln.lstrip())]:
            raise ValueError("Tabs are not allowed for indentation")
        lines.append((len(ln) - len(ln.lstrip(" ")), ln.strip()))

    root: Dict[str, Any] = {}
    # (indent of the key owning the mapping, mapping)
    stack: List[Tuple[int, Dict[str, Any]]] = [(-1, root)]

    i = 0
    while i < len(lines):
        indent, stripped = lines[i]

        while len(stack) > 1 and indent <= stack[-1][0]:
            stack.pop()
        cur = stack[-1][1]

        if stripped.startswith("-"):
            raise ValueError(f"Unexpected list item: {stripped}")
        if ":" not in stripped:
            raise ValueError(f"Invalid line (expected key: value): {stripped}")

        key, rest = stripped.split(":", 1)
        key = _unquote(key.strip())
        rest = rest.strip()
        if not key:
            raise ValueError("Empty key")
        if key in cur:
            raise ValueError(f"Duplicate key: {key}")

        if rest:
            cur[key] = _parse_scalar(rest)
            i += 1
            continue

        j = i + 1
        has_block = j < len(lines) and lines[j][0] > indent

        if has_block and lines[j][1].startswith("-"):
            items: List[Any] = []
            while j < len(lines) and lines[j][0] > indent and lines[j][1].startswith("-"):
                items.append(_parse_scalar(lines[j][1][1:].strip()))
                j += 1
            cur[key] = items
            i = j
            continue

        if has_block:
            child: Dict[str, Any] = {}
            cur[key] = child
            stack.append((indent, child))
        else:
            cur[key] = None
        i += 1

    return root


def _parse_json(text: str) -> Dict[str, Any]:
    obj = json.loads(text)
    if not isinstance(obj, dict):
        raise ValueError("Engine config JSON must be an object")
    return obj


def load_engine_config(path: str) -> EngineConfig:
    """Load an engine config from YAML/JSON.

    Raises ConfigurationError for unparseable or invalid content and
    FileNotFoundError when path does not exist.

    Time:  O(n)
    Space: O(n)
    """

    p = Path(path)
    text = p.read_text(encoding="utf-8")
    suffix = p.suffix.lower()

    try:
        if suffix == ".json" or (suffix not in {".yaml", ".yml"} and text.lstrip().startswith("{")):
            data = _parse_json(text)
        else:
            data = _parse_minimal_yaml(text)
    except ValueError as e:
        raise ConfigurationError(f"cannot parse engine config {p.name}: {e}") from e

    return EngineConfig.from_mapping(data)


def load_engine_config_from_env(default: Optional[str] = None) -> EngineConfig:
    """Load the config named by VOTEGATE_CONFIG, or built-in defaults."""

    path = (os.environ.get(CONFIG_ENV_VAR) or "").strip() or default
    if not path:
        return EngineConfig()
    return load_engine_config(path)


def build_checker(
    config: Optional[EngineConfig] = None,
    voters: Iterable[Voter] = (),
    *,
    fault_reporter: Optional[FaultReporter] = None,
) -> AuthorizationChecker:
    """Assemble hierarchy, voters, manager and facade from a config.

    Voter order: LabelVoter, AuthenticatedVoter (if enabled), then the
    application voters in the order given.
    """

    cfg = config or EngineConfig()
    hierarchy = cfg.label_hierarchy

    registry = VoterRegistry()
    registry.register(
        LabelVoter(hierarchy=hierarchy, prefix=cfg.label_prefix, absent_label=cfg.absent_label)
    )
    if cfg.authenticated_voter:
        registry.register(AuthenticatedVoter())
    for v in voters:
        registry.register(v)

    manager = AccessDecisionManager(
        voters=registry.freeze(),
        policy=cfg.decision_policy(),
        degrade_voter_errors=cfg.degrade_voter_errors,
        fault_reporter=fault_reporter,
    )
    return AuthorizationChecker(manager=manager, hierarchy=hierarchy)
