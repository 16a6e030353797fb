"""Gain resolution: turn the level store into linear gains.

Every function here is a pure read of a :class:`LevelStore`.  The order of
checks in :func:`calculate_gain` matters: mutes win over solos, solos win
over levels, and a disconnected crosspoint passes nothing.

Four stages of up to +12 dB multiply, so the largest possible gain is
``10 ** (48 / 20)`` (about 251).  That headroom is intentional.
"""

from __future__ import annotations

import math

import numpy as np

from cuematrix.levels import LevelStore
from cuematrix.models import DISCONNECTED, MIN_LEVEL_DB, Route


def db_to_linear(level_db: float) -> float:
    """Convert dB to a linear factor; the range floor counts as silence."""
    if level_db <= MIN_LEVEL_DB:
        return 0.0
    return 10.0 ** (level_db / 20.0)


def gain_to_db(gain: float) -> float:
    if gain <= 0.0:
        return float("-inf")
    return 20.0 * math.log10(gain)


def calculate_gain(store: LevelStore, inp: int, out: int) -> float:
    """Effective linear gain from input ``inp`` to output ``out``."""
    if not (store.valid_input(inp) and store.valid_output(out)):
        return 0.0

    if store.output_mutes[out] or store.input_mutes[inp]:
        return 0.0
    if any(store.input_solos) and not store.input_solos[inp]:
        return 0.0
    if any(store.output_solos) and not store.output_solos[out]:
        return 0.0

    crosspoint = store.crosspoints[inp][out]
    if crosspoint is DISCONNECTED:
        return 0.0

    return (
        db_to_linear(store.main_level)
        * db_to_linear(store.input_levels[inp])
        * db_to_linear(store.output_levels[out])
        * db_to_linear(crosspoint)
    )


def active_routes(store: LevelStore) -> list[Route]:
    """All pairs that pass signal, input-major then output order."""
    routes = []
    for inp in range(store.num_inputs):
        for out in range(store.num_outputs):
            gain = calculate_gain(store, inp, out)
            if gain > 0.0:
                routes.append(Route(inp, out, gain, gain_to_db(gain)))
    return routes


def has_active_routing(store: LevelStore) -> bool:
    return any(
        calculate_gain(store, inp, out) > 0.0
        for inp in range(store.num_inputs)
        for out in range(store.num_outputs)
    )


def _levels_to_linear(levels) -> np.ndarray:
    return np.array([db_to_linear(level) for level in levels], dtype=np.float64)


def gain_matrix(store: LevelStore) -> np.ndarray:
    """The whole ``(num_inputs, num_outputs)`` gain table in one pass.

    Cell ``[i, o]`` equals ``calculate_gain(store, i, o)``; the stages are
    multiplied in the same order so the values match exactly.
    """
    shape = (store.num_inputs, store.num_outputs)
    if 0 in shape:
        return np.zeros(shape, dtype=np.float64)

    xp_linear = np.array(
        [[0.0 if c is DISCONNECTED else db_to_linear(c) for c in row] for row in store.crosspoints],
        dtype=np.float64,
    )
    gains = (
        db_to_linear(store.main_level)
        * _levels_to_linear(store.input_levels)[:, None]
        * _levels_to_linear(store.output_levels)[None, :]
        * xp_linear
    )

    in_open = ~np.asarray(store.input_mutes, dtype=bool)
    out_open = ~np.asarray(store.output_mutes, dtype=bool)
    input_solos = np.asarray(store.input_solos, dtype=bool)
    output_solos = np.asarray(store.output_solos, dtype=bool)
    if input_solos.any():
        in_open &= input_solos
    if output_solos.any():
        out_open &= output_solos

    gains[~in_open, :] = 0.0
    gains[:, ~out_open] = 0.0
    return gains
