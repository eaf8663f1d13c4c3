from __future__ import annotations

import hmac
import os
from typing import Dict, List, Optional

from votegate.core.exceptions import ConfigurationError
from votegate.core.security.actor import Actor, normalize_label

API_KEYS_ENV_VAR = "VOTEGATE_API_KEYS"
REQUIRE_AUTH_ENV_VAR = "VOTEGATE_REQUIRE_AUTH"


def _entry_labels(position: int, raw: str) -> List[str]:
    labels: List[str] = []
    for item in raw.split(","):
        if not item.strip():
            continue
        try:
            labels.append(normalize_label(item))
        except (TypeError, ValueError) as e:
            raise ConfigurationError(
                f"{API_KEYS_ENV_VAR} entry {position}: invalid label {item!r}"
            ) from e
    return labels


def parse_api_keys(raw: str) -> Dict[str, Actor]:
    """Parse VOTEGATE_API_KEYS into an API key -> Actor mapping.

    Format, semicolon-separated:  <APIKEY>:<IDENTITY>:<LABEL1,LABEL2,...>

      VOTEGATE_API_KEYS="k1:alice:ROLE_USER;k2:bob:ROLE_ADMIN,ROLE_AUDITOR"

    The label list may be empty ("k3:carol:"), giving an actor with no
    labels. A malformed entry, an invalid label or a repeated key raises
    ConfigurationError naming the entry position (never the key itself),
    so a typo cannot silently strip an actor of its labels.
    """

    out: Dict[str, Actor] = {}
    for position, entry in enumerate((raw or "").split(";"), start=1):
        entry = entry.strip()
        if not entry:
            continue

        parts = entry.split(":", 2)
        if len(parts) != 3:
            raise ConfigurationError(
                f"{API_KEYS_ENV_VAR} entry {position}: expected key:identity:labels"
            )

        key, identity = parts[0].strip(), parts[1].strip()
        if not key or not identity:
            raise ConfigurationError(
                f"{API_KEYS_ENV_VAR} entry {position}: key and identity must be non-empty"
            )
        if key in out:
            raise ConfigurationError(f"{API_KEYS_ENV_VAR} entry {position}: duplicate key")

        out[key] = Actor.create(identity, _entry_labels(position, parts[2]))
    return out


def load_auth_config() -> Dict[str, Actor]:
    return parse_api_keys(os.environ.get(API_KEYS_ENV_VAR, ""))


def requires_auth(mapping: Dict[str, Actor]) -> bool:
    """Require an API key when VOTEGATE_REQUIRE_AUTH is set or any key exists.

    Without keys and without the flag every request acts as the anonymous
    actor, which the authenticated voter treats as unauthenticated.
    """

    if os.environ.get(REQUIRE_AUTH_ENV_VAR, "").strip().lower() in {"1", "true", "yes"}:
        return True
    return bool(mapping)


def authenticate(api_key: Optional[str], mapping: Dict[str, Actor]) -> Optional[Actor]:
    # Compare against every key so timing does not reveal which one matched.
    if not api_key:
        return None

    found: Optional[Actor] = None
    for k, actor in mapping.items():
        if hmac.compare_digest(k.encode("utf-8"), api_key.encode("utf-8")):
            found = actor
    return found
