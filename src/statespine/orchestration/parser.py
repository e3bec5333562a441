"""
Definition parser - JSON workflow definition to typed state records.

Decoding is total: once the root is an object with an object ``States``
field, every other absent or wrong-typed field falls back to ``None`` /
``False`` / empty. Only an undecodable document, a non-object root, or a
missing ``States`` raise :class:`MalformedDefinitionError`.

Nested scopes (Parallel branches, the Map iterator) are decoded with the
same rules, except that a malformed nested scope becomes ``None`` instead
of failing the enclosing definition.

Example:
    >>> definition = parse_definition('{"StartAt": "A", "States": {"A": {"Type": "Pass", "End": true}}}')
    >>> definition.start_at
    'A'
    >>> definition.states["A"].end
    True
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any

from statespine.core.errors import MalformedDefinitionError
from statespine.core.logging import get_logger
from statespine.orchestration.state_types import (
    ChoiceRule,
    ChoiceState,
    MapState,
    ParallelState,
    PassState,
    StateKind,
    StateSpec,
    TaskState,
    WorkflowDefinition,
)

logger = get_logger(__name__)


def parse_definition(payload: str | bytes | Mapping[str, Any]) -> WorkflowDefinition:
    """Decode a workflow definition.

    Args:
        payload: JSON text (``str`` / ``bytes``) or an already-decoded mapping

    Returns:
        The typed definition.

    Raises:
        MalformedDefinitionError: The document cannot be decoded, the root is
            not an object, or ``States`` is missing or not an object.
    """
    if isinstance(payload, (str, bytes, bytearray)):
        try:
            root = json.loads(payload)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise MalformedDefinitionError(f"Definition is not valid JSON: {e}", cause=e) from e
    else:
        root = payload

    if not isinstance(root, Mapping):
        raise MalformedDefinitionError("Definition root must be a JSON object")

    states = root.get("States")
    if not isinstance(states, Mapping):
        raise MalformedDefinitionError("Definition has no States object")

    return _decode_scope(root, states)


def try_parse_definition(
    payload: str | bytes | Mapping[str, Any] | None,
) -> tuple[WorkflowDefinition | None, str | None]:
    """Parse without raising; returns ``(definition, error)``."""
    if payload is None:
        return None, "No workflow definition available"
    try:
        return parse_definition(payload), None
    except MalformedDefinitionError as e:
        logger.warning("definition.malformed", error=e.message)
        return None, e.message


def _decode_scope(root: Mapping[str, Any], states: Mapping[str, Any]) -> WorkflowDefinition:
    decoded: dict[str, StateSpec] = {}
    for name, raw in states.items():
        if not isinstance(name, str):
            continue
        decoded[name] = _decode_state(name, raw)
    return WorkflowDefinition(start_at=_text(root.get("StartAt")), states=decoded)


def _decode_nested(raw: Any) -> WorkflowDefinition | None:
    """Decode a nested scope; ``None`` when it has no object ``States``."""
    if not isinstance(raw, Mapping):
        logger.debug("definition.nested_scope_skipped", reason="not an object")
        return None
    states = raw.get("States")
    if not isinstance(states, Mapping):
        logger.debug("definition.nested_scope_skipped", reason="no States object")
        return None
    return _decode_scope(raw, states)


def _decode_state(name: str, raw: Any) -> StateSpec:
    if not isinstance(raw, Mapping):
        return PassState(name=name, kind=StateKind.UNKNOWN)

    kind = StateKind.from_type(raw.get("Type"))
    common = {
        "name": name,
        "next": _text(raw.get("Next")),
        "end": raw.get("End") is True,
    }

    match kind:
        case StateKind.TASK:
            return TaskState(
                **common,
                resource=_text(raw.get("Resource")),
                parameters=_mapping(raw.get("Parameters")),
            )
        case StateKind.CHOICE:
            return ChoiceState(
                **common,
                choices=_decode_choices(raw.get("Choices")),
                default=_text(raw.get("Default")),
            )
        case StateKind.PARALLEL:
            branches = raw.get("Branches")
            if not isinstance(branches, list):
                branches = []
            return ParallelState(
                **common,
                branches=tuple(_decode_nested(branch) for branch in branches),
            )
        case StateKind.MAP:
            scope = raw.get("Iterator")
            if not isinstance(scope, Mapping):
                scope = raw.get("ItemProcessor")
            return MapState(**common, iterator=_decode_nested(scope))
        case _:
            return PassState(**common, kind=kind)


def _decode_choices(raw: Any) -> tuple[ChoiceRule, ...]:
    if not isinstance(raw, list):
        return ()
    rules = []
    for rule in raw:
        if not isinstance(rule, Mapping):
            continue
        condition = {key: value for key, value in rule.items() if key != "Next"}
        rules.append(ChoiceRule(condition=condition, next=_text(rule.get("Next"))))
    return tuple(rules)


def _text(value: Any) -> str | None:
    """Non-blank string or ``None``."""
    if isinstance(value, str) and value.strip():
        return value
    return None


def _mapping(value: Any) -> dict[str, Any]:
    if isinstance(value, Mapping):
        return dict(value)
    return {}


__all__ = ["parse_definition", "try_parse_definition"]
