"""Map a candidate onto an existing order row by identity key priority."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from jigorders.domain.model import is_blank

from .contracts import Resolution
from .kinds import DEFAULT_IDENTITY_KEYS, IDENTITY_KEY_FIELDS, IdentityKey

if TYPE_CHECKING:
    from collections.abc import Sequence

    from jigorders.domain.model import Candidate
    from jigorders.domain.ports import OrderRepository

log = getLogger(__name__)


def identity_values(candidate: Candidate, key: IdentityKey) -> tuple[str, ...] | None:
    """Return the candidate's values for ``key``, or ``None`` if any is blank."""

    values: list[str] = []
    for name in IDENTITY_KEY_FIELDS[key]:
        value = getattr(candidate, name)
        if is_blank(value):
            return None
        values.append(str(value))
    return tuple(values)


def select_identity_key(
    candidate: Candidate, keys: Sequence[IdentityKey] = DEFAULT_IDENTITY_KEYS
) -> tuple[IdentityKey, tuple[str, ...]] | None:
    for key in keys:
        values = identity_values(candidate, key)
        if values is not None:
            return key, values
    return None


def resolve_candidate(
    candidate: Candidate,
    repository: OrderRepository,
    *,
    keys: Sequence[IdentityKey] = DEFAULT_IDENTITY_KEYS,
) -> Resolution:
    """Resolve ``candidate`` against ``repository``.

    Only the highest-priority key present on the candidate is consulted. A miss on
    that key makes the candidate new even if a lower-priority key would match.
    """

    selected = select_identity_key(candidate, keys)
    if selected is None:
        return Resolution(consulted_key=None)
    key, values = selected
    target = repository.find_by_identity(key, values)
    log.debug("Resolved by %s=%s: %s", key.value, values, "hit" if target else "miss")
    return Resolution(consulted_key=key, target=target)
