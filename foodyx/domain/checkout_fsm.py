"""Checkout state machine: named states and the transition table."""
from __future__ import annotations

import logging
from enum import Enum
from typing import Mapping

from foodyx.core.exceptions import IllegalTransitionException

logger = logging.getLogger(__name__)


class CheckoutState(str, Enum):
    IDLE = "idle"
    CREATING = "creating"
    VERIFYING = "verifying"
    ASSIGNING_DRIVER = "assigning_driver"
    NO_DRIVER_FOUND = "no_driver_found"
    DRIVER_FOUND = "driver_found"
    PAYING = "paying"
    CONFIRMING = "confirming"
    DONE = "done"
    FAILED = "failed"


_S = CheckoutState

# Every state except IDLE may also fall back to IDLE (unexpected errors, abandon)
CHECKOUT_TRANSITIONS: Mapping[CheckoutState, frozenset[CheckoutState]] = {
    _S.IDLE: frozenset({_S.CREATING}),
    _S.CREATING: frozenset({_S.VERIFYING, _S.FAILED, _S.IDLE}),
    _S.VERIFYING: frozenset({_S.ASSIGNING_DRIVER, _S.FAILED, _S.IDLE}),
    _S.ASSIGNING_DRIVER: frozenset(
        {_S.NO_DRIVER_FOUND, _S.PAYING, _S.CONFIRMING, _S.FAILED, _S.IDLE}
    ),
    _S.NO_DRIVER_FOUND: frozenset(
        {_S.DRIVER_FOUND, _S.PAYING, _S.CONFIRMING, _S.FAILED, _S.IDLE}
    ),
    _S.DRIVER_FOUND: frozenset({_S.PAYING, _S.CONFIRMING, _S.FAILED, _S.IDLE}),
    _S.PAYING: frozenset({_S.DONE, _S.FAILED, _S.IDLE}),
    _S.CONFIRMING: frozenset({_S.DONE, _S.FAILED, _S.IDLE}),
    _S.DONE: frozenset({_S.IDLE}),
    _S.FAILED: frozenset({_S.IDLE}),
}

# States in which the order exists server-side but no driver is bound yet
AWAITING_DRIVER_STATES = frozenset({_S.NO_DRIVER_FOUND, _S.DRIVER_FOUND})

SETTLED_STATES = frozenset({_S.IDLE, _S.DONE, _S.FAILED})


class CheckoutStateMachine:
    """Holds the current checkout state and enforces the transition table."""

    def __init__(self, initial: CheckoutState = CheckoutState.IDLE) -> None:
        self._state = initial
        self._history: list[CheckoutState] = [initial]

    @property
    def state(self) -> CheckoutState:
        return self._state

    @property
    def history(self) -> list[CheckoutState]:
        return list(self._history)

    def can_transition(self, target: CheckoutState) -> bool:
        return target in CHECKOUT_TRANSITIONS[self._state]

    def transition(self, target: CheckoutState) -> CheckoutState:
        if not self.can_transition(target):
            raise IllegalTransitionException(self._state.value, target.value)
        logger.debug(f"Checkout {self._state.value} -> {target.value}")
        self._state = target
        self._history.append(target)
        return target

    def reset(self) -> None:
        """Return to IDLE from wherever the machine is."""
        if self._state is not CheckoutState.IDLE:
            self.transition(CheckoutState.IDLE)
