"""Level store -- every scalar and flag a matrix owns, always clamped."""

from __future__ import annotations

import math
import numbers

from cuematrix.models import (
    DISCONNECTED,
    MAX_LEVEL_DB,
    MIN_LEVEL_DB,
    CrosspointLevel,
    Disconnected,
    GangMember,
    MemberKind,
)


def clamp_level(level_db: float) -> float:
    """Clamp a dB value into the legal level range. NaN becomes the floor."""
    level_db = float(level_db)
    if math.isnan(level_db):
        return MIN_LEVEL_DB
    return max(MIN_LEVEL_DB, min(MAX_LEVEL_DB, level_db))


def clamp_crosspoint(level: CrosspointLevel) -> CrosspointLevel:
    if level is DISCONNECTED or level is None:
        return DISCONNECTED
    return clamp_level(level)


class LevelStore:
    """Holds master, per-channel and crosspoint levels plus mute/solo flags.

    Setters clamp and store; they do not check indices. Callers are
    expected to validate with :meth:`valid_input` / :meth:`valid_output`
    first.
    """

    def __init__(self, num_inputs: int, num_outputs: int):
        if num_inputs < 0 or num_outputs < 0:
            raise ValueError(
                f"matrix dimensions must be non-negative, got {num_inputs}x{num_outputs}"
            )
        self.num_inputs = num_inputs
        self.num_outputs = num_outputs
        self.reset()

    def reset(self):
        self.main_level: float = 0.0
        self.input_levels: list[float] = [0.0] * self.num_inputs
        self.output_levels: list[float] = [0.0] * self.num_outputs
        self.crosspoints: list[list[CrosspointLevel]] = [
            [DISCONNECTED] * self.num_outputs for _ in range(self.num_inputs)
        ]
        self.input_mutes: list[bool] = [False] * self.num_inputs
        self.output_mutes: list[bool] = [False] * self.num_outputs
        self.input_solos: list[bool] = [False] * self.num_inputs
        self.output_solos: list[bool] = [False] * self.num_outputs

    # -- index checks --------------------------------------------------------

    def valid_input(self, index) -> bool:
        return _is_index(index) and 0 <= index < self.num_inputs

    def valid_output(self, index) -> bool:
        return _is_index(index) and 0 <= index < self.num_outputs

    def valid_member(self, member: GangMember) -> bool:
        if member.kind is MemberKind.INPUT:
            return self.valid_input(member.index)
        if member.kind is MemberKind.OUTPUT:
            return self.valid_output(member.index)
        inp, out = member.index
        return self.valid_input(inp) and self.valid_output(out)

    # -- levels --------------------------------------------------------------

    def set_main_level(self, level_db: float) -> float:
        self.main_level = clamp_level(level_db)
        return self.main_level

    def set_input_level(self, index: int, level_db: float) -> float:
        self.input_levels[index] = clamp_level(level_db)
        return self.input_levels[index]

    def set_output_level(self, index: int, level_db: float) -> float:
        self.output_levels[index] = clamp_level(level_db)
        return self.output_levels[index]

    def set_crosspoint(self, inp: int, out: int, level: CrosspointLevel) -> CrosspointLevel:
        self.crosspoints[inp][out] = clamp_crosspoint(level)
        return self.crosspoints[inp][out]

    def disconnect_all(self):
        for row in self.crosspoints:
            for out in range(len(row)):
                row[out] = DISCONNECTED

    # -- flags ---------------------------------------------------------------

    def set_input_mute(self, index: int, muted: bool) -> bool:
        self.input_mutes[index] = bool(muted)
        return self.input_mutes[index]

    def set_output_mute(self, index: int, muted: bool) -> bool:
        self.output_mutes[index] = bool(muted)
        return self.output_mutes[index]

    def set_input_solo(self, index: int, soloed: bool) -> bool:
        self.input_solos[index] = bool(soloed)
        return self.input_solos[index]

    def set_output_solo(self, index: int, soloed: bool) -> bool:
        self.output_solos[index] = bool(soloed)
        return self.output_solos[index]

    # -- gang member access --------------------------------------------------

    def get(self, member: GangMember) -> CrosspointLevel:
        """Current level of the control point ``member`` names."""
        if member.kind is MemberKind.INPUT:
            return self.input_levels[member.index]
        if member.kind is MemberKind.OUTPUT:
            return self.output_levels[member.index]
        inp, out = member.index
        return self.crosspoints[inp][out]

    def put(self, member: GangMember, level: CrosspointLevel) -> CrosspointLevel:
        if member.kind is MemberKind.INPUT:
            if isinstance(level, Disconnected):
                raise ValueError("only crosspoints can be disconnected")
            return self.set_input_level(member.index, level)
        if member.kind is MemberKind.OUTPUT:
            if isinstance(level, Disconnected):
                raise ValueError("only crosspoints can be disconnected")
            return self.set_output_level(member.index, level)
        inp, out = member.index
        return self.set_crosspoint(inp, out, level)


def _is_index(value) -> bool:
    return isinstance(value, numbers.Integral) and not isinstance(value, bool)
