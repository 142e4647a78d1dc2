"""
Identifier Resolver - node references relative to a group path.

Story content can be organised into nested groups ("chapters/intro"). A
choice target is written relative to the group of the node that owns it:

    /a/b        absolute            -> a/b   ("/" alone is the root, "")
    ./x, .      same group          -> <group>/x, <group>
    ../x        parent group        -> one trailing component removed per ../
    x           local id            -> <group>/x
    sub/x       group-relative      -> <group>/sub/x

Pure string manipulation; nothing here knows about the model.
"""

from __future__ import annotations
from typing import NamedTuple

CanonicalId = str


class SplitId(NamedTuple):
    """A canonical id decomposed into its group and local id."""
    group: str
    local_id: str


def _join(group: str, rest: str) -> str:
    if not group:
        return rest
    if not rest:
        return group
    return f"{group}/{rest}"


def resolve_node_id(target: str, current_group: str) -> CanonicalId:
    """
    Resolve ``target`` written inside ``current_group`` to a canonical id.

    An empty target resolves to the empty string; callers treat that as
    "no destination".
    """
    if not target:
        return ""
    current_group = (current_group or "").strip("/")

    if target.startswith("/"):
        return target[1:]

    if target == "." or target.startswith("./"):
        rest = "" if target == "." else target[2:]
        return _join(current_group, rest)

    if target.startswith("../"):
        parts = [p for p in current_group.split("/") if p]
        rest = target
        while rest.startswith("../"):
            if parts:
                parts.pop()
            rest = rest[3:]
        if rest and rest != ".":
            parts.extend(p for p in rest.split("/") if p)
        return "/".join(parts)

    # Local ids and group-relative sub-paths join the same way.
    return _join(current_group, target)


def split_canonical_id(canonical_id: CanonicalId) -> SplitId:
    """
    Split ``"a/b/c"`` into ``SplitId(group="a/b", local_id="c")``.

    Ids without a slash live in the root group ``""``.
    """
    group, sep, local_id = canonical_id.rpartition("/")
    if not sep:
        return SplitId(group="", local_id=canonical_id)
    return SplitId(group=group, local_id=local_id)


def group_of(node_id: CanonicalId) -> str:
    return split_canonical_id(node_id).group
