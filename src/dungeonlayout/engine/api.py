"""Core API for layout operations.

This module provides the main interface for applying operations to a
layout, one at a time or as a sequence.
"""

from __future__ import annotations

import logging
from typing import Iterable

from ..core.model import LayoutState
from .ops import get_operation
from .validators import InvalidOperation, validate_all

LOGGER = logging.getLogger(__name__)


def apply(state: LayoutState, operation: dict) -> LayoutState:
    """Apply an operation to a layout and return the modified layout.

    Args:
        state: The layout to modify; it is left untouched.
        operation: Dictionary describing the operation, with its name under
            ``op`` (or ``type``) and its parameters alongside.

    Returns:
        A new LayoutState with the operation applied.

    Raises:
        ValueError: If the operation type is missing or not recognized.
        UnknownRoomError: If the operation references a missing room.
        InvalidOperation: If the operation violates layout invariants.
    """
    operation_type = operation.get("op") or operation.get("type")

    if operation_type is None:
        raise ValueError("Operation must have an 'op' or 'type' field")

    try:
        op = get_operation(operation_type)
    except KeyError:
        raise ValueError(f"Unknown operation type: {operation_type}")

    params = {k: v for k, v in operation.items() if k not in ["op", "type"]}

    op.precheck(state, **params)
    new_state = op.apply(state, **params)

    try:
        validate_all(new_state)
    except InvalidOperation as e:
        raise InvalidOperation(f"Operation '{operation_type}' failed validation: {e}")

    LOGGER.debug("Applied %s", operation_type)
    return new_state


def apply_operations(state: LayoutState, operations: Iterable[dict]) -> LayoutState:
    """Apply operations in order, each building on the previous result.

    The first failing operation raises and nothing is returned; the input
    layout is never modified.
    """
    current = state
    for operation in operations:
        current = apply(current, operation)
    return current
