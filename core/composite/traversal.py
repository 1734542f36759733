"""
Composite Scope — Visibility Traversal
=========================================
Walks the composite tree from the client's composite looking for a
chain of matching policies that reaches the provider's composite.

Import means ask upward, export means answer downward:

    1. Parent direction (skipped if the request came from the parent,
       at the root, or when a peer constraint is already committed):
       the node's import policy must match; the parent either is the
       provider composite or is searched with the matched policy as
       the peer policy.
    2. Children direction: each child other than the origin must
       export the provider (honouring the caller's peer policy); the
       child either is the provider composite or is searched afresh.
    3. No route → False.

A matched import that carries a peer constraint is final: if the
parent route fails the children are not searched.

Only one node lock is held at a time (inside match_import /
match_export); recursion happens with no lock held.
"""

from __future__ import annotations

from typing import Any, Optional

from core.composite.policies import Policy


def _is_committed(peer_policy: Optional[Policy]) -> bool:
    return peer_policy is not None and peer_policy.has_peer_constraint()


def visible(
    node: Any,
    provider: Any,
    origin: Any,
    peer_policy: Optional[Policy],
    provider_composite: Any,
) -> bool:
    parent = node.parent

    # ── Step 1: parent direction ──────────────────────────────
    if parent is not None and origin is not parent and not _is_committed(peer_policy):
        matched = node.match_import(provider)
        if matched is not None:
            committed = matched.has_peer_constraint()
            if provider_composite is parent:
                if not committed:
                    return True
                return matched.peer.satisfied_by(parent)
            if visible(parent, provider, node, matched, provider_composite):
                return True
            if committed:
                return False

    # ── Step 2: children direction ────────────────────────────
    for child in node.children():
        if child is origin:
            continue
        matched_child = child.match_export(provider, peer_policy)
        if matched_child is None:
            continue
        if provider_composite is child:
            return True
        if visible(child, provider, node, None, provider_composite):
            return True

    return False
