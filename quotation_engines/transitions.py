"""
quotation_engines.transitions -- Workflow transition validation.

Responsibility:
    Answer "is ``from -> to`` legal?" for a declarative ``Workflow`` by
    looking the pair up in its explicit transition table, and reject illegal
    moves with typed errors instead of coercing them to a nearby state.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import quotation_kernel.

Invariants enforced:
    - ``can_transition(a, b)`` is exactly ``b in legal_targets(a)``.
    - ``legal_targets`` of a terminal state is the empty set.
    - Guards attached to transitions are descriptive; this validator checks
      graph legality only.  Business gates (e.g. the engineering gate) are
      evaluated separately and in addition.

Failure modes:
    - ``validate`` raises TerminalStateError for any move out of a terminal
      state, and InvalidTransitionError for any other pair not in the table.
    - ValueError when a state name is not declared by the workflow.
"""

from __future__ import annotations

from collections.abc import Mapping
from enum import Enum
from types import MappingProxyType

from quotation_kernel.domain.workflow import Transition, Workflow
from quotation_kernel.exceptions import InvalidTransitionError, TerminalStateError
from quotation_kernel.logging_config import get_logger

logger = get_logger("engines.transitions")


def _state_name(state: str | Enum) -> str:
    return state.value if isinstance(state, Enum) else state


class TransitionValidator:
    """
    Legal-move oracle for one workflow.

    Contract:
        Built once per workflow; all lookups are O(1) against an adjacency
        map derived from ``workflow.transitions`` at construction.
    Guarantees:
        - Deterministic, no side effects besides a log record on rejection.
    Non-goals:
        - Does not evaluate guards or approval policies.
    """

    def __init__(self, workflow: Workflow) -> None:
        self._workflow = workflow
        adjacency: dict[str, dict[str, Transition]] = {s: {} for s in workflow.states}
        for t in workflow.transitions:
            adjacency[t.from_state][t.to_state] = t
        self._adjacency: Mapping[str, Mapping[str, Transition]] = MappingProxyType(
            {s: MappingProxyType(targets) for s, targets in adjacency.items()}
        )
        self._terminal = frozenset(workflow.terminal_states)

    @property
    def workflow(self) -> Workflow:
        return self._workflow

    def _require_state(self, state: str | Enum) -> str:
        name = _state_name(state)
        if name not in self._adjacency:
            raise ValueError(
                f"Unknown state {name!r} for workflow '{self._workflow.name}'"
            )
        return name

    def is_terminal(self, state: str | Enum) -> bool:
        """True if ``state`` has no legal outgoing transitions."""
        return self._require_state(state) in self._terminal

    def legal_targets(self, state: str | Enum) -> frozenset[str]:
        """All states reachable from ``state`` in one move."""
        return frozenset(self._adjacency[self._require_state(state)])

    def can_transition(self, from_state: str | Enum, to_state: str | Enum) -> bool:
        """True if ``to_state`` is a legal target of ``from_state``."""
        source = self._require_state(from_state)
        target = self._require_state(to_state)
        return target in self._adjacency[source]

    def transition_for(
        self, from_state: str | Enum, to_state: str | Enum
    ) -> Transition | None:
        """The declared Transition for a pair, or None if the pair is illegal."""
        source = self._require_state(from_state)
        return self._adjacency[source].get(self._require_state(to_state))

    def validate(self, from_state: str | Enum, to_state: str | Enum) -> Transition:
        """
        Return the declared Transition or raise.

        Raises:
            TerminalStateError: ``from_state`` is terminal.
            InvalidTransitionError: the pair is not in the table.
        """
        transition = self.transition_for(from_state, to_state)
        if transition is not None:
            return transition

        source = _state_name(from_state)
        target = _state_name(to_state)
        logger.warning("transition_rejected", extra={
            "workflow": self._workflow.name,
            "from_state": source,
            "to_state": target,
            "terminal": source in self._terminal,
        })
        if source in self._terminal:
            raise TerminalStateError(self._workflow.name, source, target)
        raise InvalidTransitionError(self._workflow.name, source, target)
