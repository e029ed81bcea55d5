"""
Authorization gate for the management surface.

States: ``loading`` until the session manager has resolved, then ``granted``
or ``denied``. In strict mode only an administrator identity is granted; lax
mode grants any authenticated identity and leaves write authorization to the
store's row policies. A denied decision carries the sign-in redirect.
"""

from dataclasses import dataclass
from enum import Enum
from typing import FrozenSet, Optional, Tuple

from portfolio.core.session import Identity, SessionManager
from portfolio.logging_config import get_logger

logger = get_logger(__name__)


class GateState(str, Enum):
    LOADING = "loading"
    DENIED = "denied"
    GRANTED = "granted"


class GateMode(str, Enum):
    STRICT = "strict"
    LAX = "lax"


class DenyReason(str, Enum):
    UNAUTHENTICATED = "unauthenticated"
    NOT_ADMIN = "not-admin"


# loading resolves once; afterwards sign-in/sign-out may flip the decision
_TRANSITIONS: FrozenSet[Tuple[GateState, GateState]] = frozenset({
    (GateState.LOADING, GateState.DENIED),
    (GateState.LOADING, GateState.GRANTED),
    (GateState.DENIED, GateState.GRANTED),
    (GateState.GRANTED, GateState.DENIED),
})


def can_transition(from_state: GateState, to_state: GateState) -> bool:
    return from_state == to_state or (from_state, to_state) in _TRANSITIONS


@dataclass(frozen=True)
class GateDecision:
    state: GateState
    identity: Optional[Identity] = None
    reason: Optional[DenyReason] = None
    redirect_to: Optional[str] = None

    @property
    def granted(self) -> bool:
        return self.state == GateState.GRANTED


def decide(
    identity: Optional[Identity],
    mode: GateMode,
    sign_in_path: str,
) -> GateDecision:
    """Decision for a resolved identity."""
    if identity is None:
        return GateDecision(
            state=GateState.DENIED,
            reason=DenyReason.UNAUTHENTICATED,
            redirect_to=sign_in_path,
        )
    if mode == GateMode.STRICT and not identity.is_admin:
        return GateDecision(
            state=GateState.DENIED,
            identity=identity,
            reason=DenyReason.NOT_ADMIN,
            redirect_to=sign_in_path,
        )
    return GateDecision(state=GateState.GRANTED, identity=identity)


class AuthorizationGate:
    """Tracks the gate state for one session manager."""

    def __init__(
        self,
        sessions: SessionManager,
        mode: GateMode = GateMode.STRICT,
        sign_in_path: str = "/auth",
    ):
        self._sessions = sessions
        self.mode = GateMode(mode)
        self.sign_in_path = sign_in_path
        self._state = GateState.LOADING

    @property
    def state(self) -> GateState:
        return self._state

    def evaluate(self) -> GateDecision:
        """Current decision without waiting; ``loading`` before resolution."""
        if not self._sessions.resolved:
            return GateDecision(state=GateState.LOADING)
        decision = decide(self._sessions.identity, self.mode, self.sign_in_path)
        self._move_to(decision)
        return decision

    async def resolve(self) -> GateDecision:
        """Wait for the session manager, then decide."""
        await self._sessions.wait_resolved()
        return self.evaluate()

    def _move_to(self, decision: GateDecision) -> None:
        if not can_transition(self._state, decision.state):
            raise ValueError(f"Invalid gate transition {self._state.value} -> {decision.state.value}")
        if decision.state != self._state:
            logger.info(
                "Gate %s -> %s",
                self._state.value,
                decision.state.value,
                extra={"reason": decision.reason.value if decision.reason else None},
            )
        self._state = decision.state
