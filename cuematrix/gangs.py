"""Gang registry -- linked control points that move together.

A gang is an ordered list of :class:`GangMember` entries.  When any member
is moved, the same dB delta is applied to every member, each clamped on
its own, so relative offsets survive until a member hits the end of the
range.

Membership is advisory: the same control point may sit in several gangs,
and :meth:`GangRegistry.find_gang` simply reports the first one.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Iterator, Mapping, Optional, Union

from cuematrix.levels import LevelStore, clamp_level
from cuematrix.models import (
    DISCONNECTED,
    UNITY_DB,
    CrosspointLevel,
    GangMember,
    MemberKind,
)


logger = logging.getLogger(__name__)

MemberSpec = Union[GangMember, Mapping[str, Any]]


def as_member(spec: MemberSpec) -> GangMember:
    """Accept a GangMember or a ``{"kind", "index"}`` mapping."""
    if isinstance(spec, GangMember):
        return spec
    return GangMember.from_dict(dict(spec))


class GangRegistry:
    def __init__(self):
        self._gangs: dict[int, list[GangMember]] = {}
        self._next_id = 1

    def __len__(self) -> int:
        return len(self._gangs)

    def __contains__(self, gang_id) -> bool:
        return gang_id in self._gangs

    # -- membership ----------------------------------------------------------

    def create_gang(self, members: Iterable[MemberSpec]) -> int:
        """Store ``members`` verbatim under a fresh id and return the id."""
        gang = [as_member(m) for m in members]
        gang_id = self._next_id
        self._next_id += 1
        self._gangs[gang_id] = gang
        logger.debug("gang %d created with %d member(s)", gang_id, len(gang))
        return gang_id

    def remove_gang(self, gang_id: int) -> bool:
        removed = self._gangs.pop(gang_id, None) is not None
        if removed:
            logger.debug("gang %d removed", gang_id)
        return removed

    def find_gang(self, kind: Union[MemberKind, str], index) -> Optional[int]:
        """Return the first gang holding ``(kind, index)``, or None."""
        target = GangMember(MemberKind(kind), index)
        for gang_id, gang in self._gangs.items():
            for member in gang:
                if member == target:
                    return gang_id
        return None

    def members(self, gang_id: int) -> list[GangMember]:
        return list(self._gangs[gang_id])

    def items(self) -> Iterator[tuple[int, list[GangMember]]]:
        for gang_id, gang in self._gangs.items():
            yield gang_id, list(gang)

    def clear(self):
        """Drop every gang. Ids keep counting so old ids are never reused."""
        self._gangs.clear()

    def restore(self, entries: Iterable[tuple[int, list[GangMember]]]):
        """Replace all gangs with ``entries`` as read back from a snapshot."""
        self._gangs = {}
        for gang_id, gang in entries:
            self._gangs[int(gang_id)] = list(gang)
        if self._gangs:
            self._next_id = max(self._next_id, max(self._gangs) + 1)

    # -- propagation ---------------------------------------------------------

    def apply_ganged_change(
        self,
        gang_id: int,
        new_value: float,
        source: GangMember,
        store: LevelStore,
    ) -> Iterator[tuple[GangMember, CrosspointLevel]]:
        """Move every member of ``gang_id`` by the delta ``source`` is asked to move.

        Yields ``(member, stored_level)`` after each member is written so the
        caller can notify between writes.  Disconnected crosspoints stay
        disconnected and are not yielded; members that fall outside the
        store's dimensions are skipped.
        """
        gang = self._gangs.get(gang_id)
        if gang is None:
            return

        current = store.get(source)
        if current is DISCONNECTED:
            current = UNITY_DB
        delta = clamp_level(new_value) - current

        for member in gang:
            if not store.valid_member(member):
                logger.debug("gang %d: member %s out of range, skipped", gang_id, member)
                continue
            level = store.get(member)
            if level is DISCONNECTED:
                continue
            yield member, store.put(member, level + delta)
