"""Snapshot codec -- whole-matrix state as a plain, JSON-compatible dict.

Snapshot layout::

    {
      "name": "Cue 1",
      "num_inputs": 2, "num_outputs": 2,        # informational only
      "main_level": 0.0,
      "input_levels": [...], "output_levels": [...],
      "crosspoints": [[0.0, None], [None, -6.0]],   # None = disconnected
      "input_mutes": [...], "output_mutes": [...],
      "input_solos": [...], "output_solos": [...],
      "gangs": [{"id": 1, "members": [{"kind": "input", "index": 0}]}]
    }

Dimensions are never restored: the receiving matrix keeps its own
``num_inputs`` / ``num_outputs``.  Missing entries fall back to the initial
state (0 dB, disconnected, False) and surplus entries are dropped, unless
``strict`` is requested, in which case any length mismatch is an error.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from cuematrix.gangs import GangRegistry, as_member
from cuematrix.levels import LevelStore, clamp_crosspoint, clamp_level
from cuematrix.models import DISCONNECTED, CrosspointLevel, GangMember, SnapshotError


logger = logging.getLogger(__name__)


def capture(name: str, store: LevelStore, gangs: GangRegistry) -> dict[str, Any]:
    """Deep, independent copy of everything the matrix owns."""
    return {
        "name": name,
        "num_inputs": store.num_inputs,
        "num_outputs": store.num_outputs,
        "main_level": store.main_level,
        "input_levels": list(store.input_levels),
        "output_levels": list(store.output_levels),
        "crosspoints": [
            [None if level is DISCONNECTED else level for level in row]
            for row in store.crosspoints
        ],
        "input_mutes": list(store.input_mutes),
        "output_mutes": list(store.output_mutes),
        "input_solos": list(store.input_solos),
        "output_solos": list(store.output_solos),
        "gangs": [
            {"id": gang_id, "members": [m.to_dict() for m in members]}
            for gang_id, members in gangs.items()
        ],
    }


@dataclass
class DecodedState:
    """A validated snapshot, ready to be written into a store."""

    name: Optional[str]
    main_level: float
    input_levels: list[float]
    output_levels: list[float]
    crosspoints: list[list[CrosspointLevel]]
    input_mutes: list[bool]
    output_mutes: list[bool]
    input_solos: list[bool]
    output_solos: list[bool]
    gangs: list[tuple[int, list[GangMember]]]


def decode(snapshot: Mapping[str, Any], num_inputs: int, num_outputs: int,
           strict: bool = False) -> DecodedState:
    """Validate ``snapshot`` against the given dimensions without touching any state."""
    if not isinstance(snapshot, Mapping):
        raise SnapshotError(f"snapshot must be a mapping, got {type(snapshot).__name__}")

    def fit(field: str, size: int, default, convert) -> list:
        values = snapshot.get(field)
        if values is None:
            return [default] * size
        values = _as_list(values, f"'{field}'")
        if len(values) != size:
            if strict:
                raise SnapshotError(f"'{field}' has {len(values)} entries, expected {size}")
            logger.debug("snapshot '%s' has %d entries, fitting to %d", field, len(values), size)
        fitted = []
        for i in range(size):
            if i >= len(values):
                fitted.append(default)
                continue
            try:
                fitted.append(convert(values[i]))
            except (TypeError, ValueError) as e:
                raise SnapshotError(f"'{field}'[{i}] is invalid: {e}") from None
        return fitted

    try:
        main_level = clamp_level(snapshot.get("main_level", 0.0))
    except (TypeError, ValueError) as e:
        raise SnapshotError(f"'main_level' is invalid: {e}") from None

    rows = fit("crosspoints", num_inputs, None, lambda row: row)
    crosspoints = []
    for i, row in enumerate(rows):
        crosspoints.append(
            _fit_row(row, i, num_outputs, strict) if row is not None
            else [DISCONNECTED] * num_outputs
        )

    name = snapshot.get("name")
    if name is not None and not isinstance(name, str):
        raise SnapshotError(f"'name' must be a string, got {type(name).__name__}")

    return DecodedState(
        name=name,
        main_level=main_level,
        input_levels=fit("input_levels", num_inputs, 0.0, clamp_level),
        output_levels=fit("output_levels", num_outputs, 0.0, clamp_level),
        crosspoints=crosspoints,
        input_mutes=fit("input_mutes", num_inputs, False, _as_flag),
        output_mutes=fit("output_mutes", num_outputs, False, _as_flag),
        input_solos=fit("input_solos", num_inputs, False, _as_flag),
        output_solos=fit("output_solos", num_outputs, False, _as_flag),
        gangs=_decode_gangs(snapshot.get("gangs")),
    )


def _as_list(values, label: str) -> list:
    if isinstance(values, (str, bytes, Mapping)):
        raise SnapshotError(f"{label} must be a list, got {type(values).__name__}")
    try:
        return list(values)
    except TypeError:
        raise SnapshotError(f"{label} must be a list") from None


def _as_flag(value) -> bool:
    # 0 and 1 pass as flags.
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    raise ValueError(f"expected true or false, got {value!r}")


def _fit_row(row, inp: int, num_outputs: int, strict: bool) -> list[CrosspointLevel]:
    row = _as_list(row, f"'crosspoints'[{inp}]")
    if len(row) != num_outputs and strict:
        raise SnapshotError(
            f"'crosspoints'[{inp}] has {len(row)} entries, expected {num_outputs}"
        )
    fitted: list[CrosspointLevel] = []
    for out in range(num_outputs):
        if out >= len(row):
            fitted.append(DISCONNECTED)
            continue
        try:
            fitted.append(clamp_crosspoint(row[out]))
        except (TypeError, ValueError) as e:
            raise SnapshotError(f"'crosspoints'[{inp}][{out}] is invalid: {e}") from None
    return fitted


def _decode_gangs(entries) -> list[tuple[int, list[GangMember]]]:
    if entries is None:
        return []
    gangs = []
    seen = set()
    try:
        for entry in entries:
            gang_id = int(entry["id"])
            if gang_id in seen:
                raise SnapshotError(f"duplicate gang id {gang_id}")
            seen.add(gang_id)
            members = [as_member(m) for m in entry.get("members", [])]
            gangs.append((gang_id, members))
    except SnapshotError:
        raise
    except (AttributeError, KeyError, TypeError, ValueError) as e:
        raise SnapshotError(f"invalid gang entry: {e!r}") from None
    return gangs


def apply(state: DecodedState, store: LevelStore, gangs: GangRegistry):
    """Write a decoded snapshot into ``store`` and ``gangs``."""
    store.main_level = state.main_level
    store.input_levels = list(state.input_levels)
    store.output_levels = list(state.output_levels)
    store.crosspoints = [list(row) for row in state.crosspoints]
    store.input_mutes = list(state.input_mutes)
    store.output_mutes = list(state.output_mutes)
    store.input_solos = list(state.input_solos)
    store.output_solos = list(state.output_solos)
    gangs.restore(state.gangs)
