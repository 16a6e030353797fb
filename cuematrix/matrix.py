"""The routing matrix: N inputs x M outputs with master, gangs, mute and solo.

Mutations go through the gang registry first: a level or crosspoint that
belongs to a gang moves the whole gang by the same delta.  Every stored
change is announced to observers registered with :meth:`Matrix.on_change`.
Downstream audio code pulls gains with :meth:`Matrix.calculate_gain`,
:meth:`Matrix.get_active_routes` or :meth:`Matrix.gain_matrix`.

Out-of-range indices on mutators are ignored (no-op, no event).  The
matrix is not thread-safe; callers serialise access.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping, Optional

import numpy as np

from cuematrix import resolver, snapshot
from cuematrix.gangs import GangRegistry, MemberSpec
from cuematrix.levels import LevelStore
from cuematrix.models import (
    DISCONNECTED,
    UNITY_DB,
    ChangeEvent,
    ChangeKind,
    CrosspointLevel,
    GangMember,
    MemberKind,
    Route,
)
from cuematrix.notifier import ChangeNotifier, Observer, Subscription


logger = logging.getLogger(__name__)


class Matrix:
    def __init__(self, num_inputs: int, num_outputs: int, name: str = "Matrix"):
        self._store = LevelStore(num_inputs, num_outputs)
        self._gangs = GangRegistry()
        self._notifier = ChangeNotifier()
        self.name = name

    def __repr__(self) -> str:
        return f"Matrix({self.num_inputs}, {self.num_outputs}, name={self.name!r})"

    @property
    def num_inputs(self) -> int:
        return self._store.num_inputs

    @property
    def num_outputs(self) -> int:
        return self._store.num_outputs

    # -- events --------------------------------------------------------------

    def on_change(self, observer: Observer) -> Subscription:
        """Register ``observer`` to be called with every :class:`ChangeEvent`."""
        return self._notifier.subscribe(observer)

    def _emit(self, kind: ChangeKind, inp: Optional[int] = None,
              out: Optional[int] = None, value: Any = None):
        self._notifier.notify(ChangeEvent(kind, inp, out, value))

    def _emit_member(self, member: GangMember, level: CrosspointLevel):
        if member.kind is MemberKind.INPUT:
            self._emit(ChangeKind.INPUT, member.index, None, level)
        elif member.kind is MemberKind.OUTPUT:
            self._emit(ChangeKind.OUTPUT, None, member.index, level)
        else:
            inp, out = member.index
            self._emit(ChangeKind.CROSSPOINT, inp, out, level)

    # -- levels --------------------------------------------------------------

    def set_main_level(self, level_db: float):
        level = self._store.set_main_level(level_db)
        self._emit(ChangeKind.MAIN, None, None, level)

    def set_input_level(self, inp: int, level_db: float):
        if not self._store.valid_input(inp):
            logger.debug("%s: input %r out of range, ignored", self.name, inp)
            return
        self._set_member(GangMember.input(inp), level_db)

    def set_output_level(self, out: int, level_db: float):
        if not self._store.valid_output(out):
            logger.debug("%s: output %r out of range, ignored", self.name, out)
            return
        self._set_member(GangMember.output(out), level_db)

    def set_crosspoint(self, inp: int, out: int, level: CrosspointLevel):
        """Set a crosspoint in dB, or pass ``DISCONNECTED`` (or None) to cut it."""
        if not (self._store.valid_input(inp) and self._store.valid_output(out)):
            logger.debug("%s: crosspoint %r,%r out of range, ignored", self.name, inp, out)
            return
        member = GangMember.crosspoint(inp, out)
        if level is DISCONNECTED or level is None:
            # A disconnection has no delta to share, so it never propagates.
            stored = self._store.put(member, DISCONNECTED)
            self._emit_member(member, stored)
            return
        self._set_member(member, level)

    def _set_member(self, member: GangMember, level_db: float):
        gang_id = self._gangs.find_gang(member.kind, member.index)
        if gang_id is None:
            self._emit_member(member, self._store.put(member, level_db))
            return
        logger.debug("%s: %s moves gang %d", self.name, member, gang_id)
        for touched, level in self._gangs.apply_ganged_change(
                gang_id, level_db, member, self._store):
            self._emit_member(touched, level)

    def clear_crosspoint(self, inp: int, out: int):
        self.set_crosspoint(inp, out, DISCONNECTED)

    # -- mute / solo ---------------------------------------------------------

    def set_input_mute(self, inp: int, muted: bool):
        if self._store.valid_input(inp):
            self._emit(ChangeKind.INPUT_MUTE, inp, None, self._store.set_input_mute(inp, muted))

    def set_output_mute(self, out: int, muted: bool):
        if self._store.valid_output(out):
            self._emit(ChangeKind.OUTPUT_MUTE, None, out, self._store.set_output_mute(out, muted))

    def set_input_solo(self, inp: int, soloed: bool):
        if self._store.valid_input(inp):
            self._emit(ChangeKind.INPUT_SOLO, inp, None, self._store.set_input_solo(inp, soloed))

    def set_output_solo(self, out: int, soloed: bool):
        if self._store.valid_output(out):
            self._emit(ChangeKind.OUTPUT_SOLO, None, out, self._store.set_output_solo(out, soloed))

    # -- getters -------------------------------------------------------------

    @property
    def main_level(self) -> float:
        return self._store.main_level

    def get_input_level(self, inp: int) -> float:
        return self._store.input_levels[self._check_input(inp)]

    def get_output_level(self, out: int) -> float:
        return self._store.output_levels[self._check_output(out)]

    def get_crosspoint(self, inp: int, out: int) -> CrosspointLevel:
        return self._store.crosspoints[self._check_input(inp)][self._check_output(out)]

    def is_connected(self, inp: int, out: int) -> bool:
        return self.get_crosspoint(inp, out) is not DISCONNECTED

    def is_input_muted(self, inp: int) -> bool:
        return self._store.input_mutes[self._check_input(inp)]

    def is_output_muted(self, out: int) -> bool:
        return self._store.output_mutes[self._check_output(out)]

    def is_input_soloed(self, inp: int) -> bool:
        return self._store.input_solos[self._check_input(inp)]

    def is_output_soloed(self, out: int) -> bool:
        return self._store.output_solos[self._check_output(out)]

    def _check_input(self, inp: int) -> int:
        if not self._store.valid_input(inp):
            raise IndexError(f"input {inp!r} out of range 0-{self.num_inputs - 1}")
        return inp

    def _check_output(self, out: int) -> int:
        if not self._store.valid_output(out):
            raise IndexError(f"output {out!r} out of range 0-{self.num_outputs - 1}")
        return out

    # -- gangs ---------------------------------------------------------------

    def create_gang(self, members: Iterable[MemberSpec]) -> int:
        """Link control points; returns the new gang id.

        Members are stored as given: no de-duplication and no check against
        other gangs or the matrix dimensions.
        """
        return self._gangs.create_gang(members)

    def find_gang(self, kind, index) -> Optional[int]:
        return self._gangs.find_gang(kind, index)

    def remove_gang(self, gang_id: int) -> bool:
        return self._gangs.remove_gang(gang_id)

    def gang_members(self, gang_id: int) -> list[GangMember]:
        return self._gangs.members(gang_id)

    @property
    def gangs(self) -> dict[int, list[GangMember]]:
        return dict(self._gangs.items())

    # -- gain queries --------------------------------------------------------

    def calculate_gain(self, inp: int, out: int) -> float:
        return resolver.calculate_gain(self._store, inp, out)

    def get_active_routes(self) -> list[Route]:
        return resolver.active_routes(self._store)

    def gain_matrix(self) -> np.ndarray:
        return resolver.gain_matrix(self._store)

    def has_active_routing(self) -> bool:
        return resolver.has_active_routing(self._store)

    # -- whole-state operations ----------------------------------------------

    def get_state(self) -> dict[str, Any]:
        return snapshot.capture(self.name, self._store, self._gangs)

    def set_state(self, state: Mapping[str, Any], strict: bool = False):
        """Replace every field from ``state``; fires a single ``state`` event.

        Raises :class:`~cuematrix.models.SnapshotError` for malformed input
        (and, with ``strict``, for arrays that do not match this matrix's
        dimensions).  Nothing is changed when it raises.
        """
        decoded = snapshot.decode(state, self.num_inputs, self.num_outputs, strict=strict)
        snapshot.apply(decoded, self._store, self._gangs)
        if decoded.name:
            self.name = decoded.name
        self._emit(ChangeKind.STATE, None, None, self.get_state())

    def clear(self):
        """Back to the initial state: 0 dB, disconnected, no flags, no gangs."""
        self._store.reset()
        self._gangs.clear()
        self._emit(ChangeKind.CLEAR)

    def set_silent(self):
        """Disconnect every crosspoint; levels, flags and gangs are kept."""
        self._store.disconnect_all()
        self._emit(ChangeKind.SILENT)

    def set_unity(self):
        """Connect input ``n`` to output ``n`` at 0 dB along the diagonal."""
        for n in range(min(self.num_inputs, self.num_outputs)):
            self.set_crosspoint(n, n, UNITY_DB)
