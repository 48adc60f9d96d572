"""
The action record shared by every search domain.
"""

from collections import namedtuple

MOVE = "move"
UNLOCK = "unlock"
PRODUCE = "produce"
IDLE = "idle"
WAIT = "wait"

Action = namedtuple("Action", ["kind", "agent", "target", "cost", "gain"])
"""
kind: one of MOVE, UNLOCK, PRODUCE, IDLE, WAIT
agent: index of the acting agent (always 0 in single-agent domains)
target: destination location (MOVE), unlocked location (UNLOCK),
        capacity kind (PRODUCE), None otherwise
cost: turns consumed by the acting agent
gain: yield credited immediately when the action is applied
"""


def describe(action, names=None):
    """Human-readable one-liner, e.g. 'agent 0 move -> DD (2)'."""
    target = action.target
    if names is not None and target is not None:
        target = names[target]
    if action.kind in (IDLE, WAIT):
        return f"agent {action.agent} {action.kind}"
    if action.kind == UNLOCK:
        return f"agent {action.agent} unlock {target} (+{action.gain})"
    if action.kind == PRODUCE:
        return f"agent {action.agent} produce {target}"
    return f"agent {action.agent} move -> {target} ({action.cost})"
