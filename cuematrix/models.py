"""Shared data models and constants."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Union

MIN_LEVEL_DB = -60.0  # at or below this a stage is treated as -inf
MAX_LEVEL_DB = 12.0
UNITY_DB = 0.0


class Disconnected(Enum):
    """State of a crosspoint with no connection at all."""

    DISCONNECTED = "disconnected"

    def __repr__(self) -> str:
        return "DISCONNECTED"


DISCONNECTED = Disconnected.DISCONNECTED

CrosspointLevel = Union[float, Disconnected]


class MemberKind(str, Enum):
    INPUT = "input"
    OUTPUT = "output"
    CROSSPOINT = "crosspoint"


class ChangeKind(str, Enum):
    MAIN = "main"
    INPUT = "input"
    OUTPUT = "output"
    CROSSPOINT = "crosspoint"
    INPUT_MUTE = "input_mute"
    OUTPUT_MUTE = "output_mute"
    INPUT_SOLO = "input_solo"
    OUTPUT_SOLO = "output_solo"
    STATE = "state"
    CLEAR = "clear"
    SILENT = "silent"


class SnapshotError(ValueError):
    """A snapshot could not be applied to a matrix."""


@dataclass(frozen=True)
class GangMember:
    """One control point of a gang.

    ``index`` is a channel number for inputs and outputs and an
    ``(input, output)`` tuple for crosspoints.
    """

    kind: MemberKind
    index: Union[int, tuple[int, int]]

    def __post_init__(self):
        kind = MemberKind(self.kind)
        object.__setattr__(self, "kind", kind)
        if kind is MemberKind.CROSSPOINT:
            try:
                inp, out = self.index  # type: ignore[misc]
            except (TypeError, ValueError):
                raise ValueError(
                    f"crosspoint member needs an (input, output) index, got {self.index!r}"
                ) from None
            object.__setattr__(self, "index", (int(inp), int(out)))
        else:
            if isinstance(self.index, (tuple, list)):
                raise ValueError(f"{kind.value} member needs a channel index, got {self.index!r}")
            object.__setattr__(self, "index", int(self.index))

    @classmethod
    def input(cls, index: int) -> "GangMember":
        return cls(MemberKind.INPUT, index)

    @classmethod
    def output(cls, index: int) -> "GangMember":
        return cls(MemberKind.OUTPUT, index)

    @classmethod
    def crosspoint(cls, inp: int, out: int) -> "GangMember":
        return cls(MemberKind.CROSSPOINT, (inp, out))

    def to_dict(self) -> dict[str, Any]:
        index = list(self.index) if isinstance(self.index, tuple) else self.index
        return {"kind": self.kind.value, "index": index}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "GangMember":
        index = data["index"]
        if isinstance(index, list):
            index = tuple(index)
        return cls(MemberKind(data["kind"]), index)


@dataclass(frozen=True)
class ChangeEvent:
    """A single accepted mutation, as seen by observers."""

    kind: ChangeKind
    input: Optional[int] = None
    output: Optional[int] = None
    value: Any = None


@dataclass(frozen=True)
class Route:
    """An (input, output) pair that currently passes signal."""

    input: int
    output: int
    gain: float
    gain_db: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "input": self.input,
            "output": self.output,
            "gain": self.gain,
            "gain_db": self.gain_db,
        }
