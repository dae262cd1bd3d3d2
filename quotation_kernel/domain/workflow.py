"""
Canonical workflow types (``quotation_kernel.domain.workflow``).

Responsibility
--------------
Pure value objects for workflow state machines.  The quotation module
declares its lifecycle with these types; the transition validator engine
evaluates them.

Architecture position
---------------------
**Kernel domain layer** -- pure value objects.  ZERO I/O.

Invariants enforced
-------------------
* Transitions reference only states in ``Workflow.states``.
* ``initial_state`` is a member of ``states``.
* ``terminal_states`` have no outgoing transitions.
* At most one transition per ``(from_state, to_state)`` pair.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Guard:
    """A condition that must be satisfied before a transition fires.

    Contract: frozen, descriptive only.
    Non-goals: does not evaluate the condition -- the engine layer does.
    """
    name: str
    description: str

    def __post_init__(self) -> None:
        if not self.name or not self.description:
            raise ValueError("Guard name and description must be non-empty")


@dataclass(frozen=True)
class Transition:
    """A legal state transition in a workflow."""
    from_state: str
    to_state: str
    action: str
    guard: Guard | None = None


@dataclass(frozen=True)
class Workflow:
    """A state machine definition for a document lifecycle.

    Contract: frozen; validated at construction.
    Guarantees: the transition tuple is the complete adjacency table.  Nothing
    is inferred from state names.
    """
    name: str
    description: str
    initial_state: str
    states: tuple[str, ...]
    transitions: tuple[Transition, ...]
    terminal_states: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        known = set(self.states)
        if self.initial_state not in known:
            raise ValueError(
                f"Workflow {self.name}: initial state {self.initial_state!r} "
                f"is not a declared state"
            )
        unknown_terminal = set(self.terminal_states) - known
        if unknown_terminal:
            raise ValueError(
                f"Workflow {self.name}: unknown terminal states {sorted(unknown_terminal)}"
            )
        seen: set[tuple[str, str]] = set()
        for t in self.transitions:
            if t.from_state not in known or t.to_state not in known:
                raise ValueError(
                    f"Workflow {self.name}: transition {t.from_state} -> "
                    f"{t.to_state} references an undeclared state"
                )
            if t.from_state in self.terminal_states:
                raise ValueError(
                    f"Workflow {self.name}: terminal state {t.from_state!r} "
                    f"has an outgoing transition"
                )
            pair = (t.from_state, t.to_state)
            if pair in seen:
                raise ValueError(
                    f"Workflow {self.name}: duplicate transition {t.from_state} -> {t.to_state}"
                )
            seen.add(pair)
