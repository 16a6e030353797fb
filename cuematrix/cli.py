"""Interactive command-line interface for cuematrix.

All inputs and outputs are presented 1-based to the user and converted to
0-based internally.  Crosspoint levels accept ``off`` for a disconnected
cell.
"""

from __future__ import annotations

import cmd
import json
import math

from cuematrix.deps import HAS_SOUNDDEVICE, sd
from cuematrix.host import MatrixHost
from cuematrix.models import DISCONNECTED, GangMember, MemberKind
from cuematrix.resolver import gain_to_db

OFF_WORDS = ("off", "x", "none", "-")
ON_WORDS = ("on", "1", "true", "yes")


def _to_internal(user_num: str, count: int, label: str) -> int:
    """Convert a 1-based user channel to a 0-based index, with validation."""
    try:
        num = int(user_num)
    except ValueError:
        raise ValueError(f"{label} must be a number") from None
    if not 1 <= num <= count:
        raise ValueError(f"{label} must be 1-{count}")
    return num - 1


def _parse_level(text: str, allow_off: bool = False):
    if allow_off and text.lower() in OFF_WORDS:
        return DISCONNECTED
    try:
        return float(text)
    except ValueError:
        raise ValueError(f"level must be a number of dB, got '{text}'") from None


def _format_db(level) -> str:
    if level is DISCONNECTED:
        return "off"
    if math.isinf(level):
        return "-inf"
    return f"{level:+.1f}"


class MatrixCLI(cmd.Cmd):
    intro = r"""
============================================================
  cuematrix  -  show routing matrix
============================================================
Type 'help' for available commands.
Inputs and outputs are numbered from 1.
"""
    prompt = "matrix> "

    def __init__(self, host: MatrixHost, stdout=None, owns_host: bool = True):
        super().__init__(stdout=stdout)
        self.host = host
        # When True, quit/exit will call host.shutdown().
        self._owns_host = owns_host

    @property
    def matrix(self):
        return self.host.matrix

    # -- helper for redirectable output --------------------------------------

    def _print(self, *args, **kwargs):
        kwargs.setdefault("file", self.stdout)
        print(*args, **kwargs)

    def _input(self, text: str) -> int:
        return _to_internal(text, self.matrix.num_inputs, "input")

    def _output(self, text: str) -> int:
        return _to_internal(text, self.matrix.num_outputs, "output")

    def emptyline(self):
        pass

    def default(self, line):
        self._print(f"Unknown command: {line.split()[0]}  (try 'help')")

    # -- levels --------------------------------------------------------------

    def do_main(self, arg):
        """Get/set master level: main [dB]"""
        if arg.strip():
            try:
                self.matrix.set_main_level(_parse_level(arg.strip()))
            except ValueError as e:
                self._print(f"Error: {e}")
                return
        self._print(f"  main = {_format_db(self.matrix.main_level)} dB")

    def do_input(self, arg):
        """Get/set input level: input <in> [dB]"""
        parts = arg.strip().split()
        if not parts:
            self._print("Usage: input <in> [dB]")
            return
        try:
            idx = self._input(parts[0])
            if len(parts) > 1:
                self.matrix.set_input_level(idx, _parse_level(parts[1]))
        except ValueError as e:
            self._print(f"Error: {e}")
            return
        self._print(f"  input {idx + 1} = {_format_db(self.matrix.get_input_level(idx))} dB")

    def do_output(self, arg):
        """Get/set output level: output <out> [dB]"""
        parts = arg.strip().split()
        if not parts:
            self._print("Usage: output <out> [dB]")
            return
        try:
            idx = self._output(parts[0])
            if len(parts) > 1:
                self.matrix.set_output_level(idx, _parse_level(parts[1]))
        except ValueError as e:
            self._print(f"Error: {e}")
            return
        self._print(f"  output {idx + 1} = {_format_db(self.matrix.get_output_level(idx))} dB")

    def do_xp(self, arg):
        """Get/set crosspoint: xp <in> <out> [dB|off]"""
        parts = arg.strip().split()
        if len(parts) < 2:
            self._print("Usage: xp <in> <out> [dB|off]")
            return
        try:
            inp = self._input(parts[0])
            out = self._output(parts[1])
            if len(parts) > 2:
                self.matrix.set_crosspoint(inp, out, _parse_level(parts[2], allow_off=True))
        except ValueError as e:
            self._print(f"Error: {e}")
            return
        level = self.matrix.get_crosspoint(inp, out)
        self._print(f"  xp {inp + 1}>{out + 1} = {_format_db(level)}")

    # -- mute / solo ---------------------------------------------------------

    def _flag(self, arg, what: str):
        parts = arg.strip().split()
        if len(parts) < 2 or parts[0] not in ("in", "out"):
            self._print(f"Usage: {what} in|out <n> [on|off]")
            return
        side = parts[0]
        try:
            idx = self._input(parts[1]) if side == "in" else self._output(parts[1])
        except ValueError as e:
            self._print(f"Error: {e}")
            return

        m = self.matrix
        getter, setter = {
            ("in", "mute"): (m.is_input_muted, m.set_input_mute),
            ("out", "mute"): (m.is_output_muted, m.set_output_mute),
            ("in", "solo"): (m.is_input_soloed, m.set_input_solo),
            ("out", "solo"): (m.is_output_soloed, m.set_output_solo),
        }[(side, what)]
        value = (parts[2].lower() in ON_WORDS) if len(parts) > 2 else not getter(idx)
        setter(idx, value)
        label = what.upper() if value else f"un{what}"
        self._print(f"  {side} {idx + 1}: {label}")

    def do_mute(self, arg):
        """Toggle/set mute: mute in|out <n> [on|off]"""
        self._flag(arg, "mute")

    def do_solo(self, arg):
        """Toggle/set solo: solo in|out <n> [on|off]"""
        self._flag(arg, "solo")

    # -- gangs ---------------------------------------------------------------

    def _parse_member(self, token: str) -> GangMember:
        token = token.lower()
        if token.startswith("xp"):
            try:
                inp, out = token[2:].split(":")
            except ValueError:
                raise ValueError(f"crosspoint member must look like xp1:2, got '{token}'") from None
            return GangMember.crosspoint(self._input(inp), self._output(out))
        if token.startswith("in"):
            return GangMember.input(self._input(token[2:]))
        if token.startswith("out"):
            return GangMember.output(self._output(token[3:]))
        raise ValueError(f"unknown gang member '{token}' (use inN, outN or xpI:O)")

    def _describe_member(self, member: GangMember) -> str:
        if member.kind is MemberKind.CROSSPOINT:
            inp, out = member.index
            return f"xp{inp + 1}:{out + 1}"
        prefix = "in" if member.kind is MemberKind.INPUT else "out"
        return f"{prefix}{member.index + 1}"

    def do_gang(self, arg):
        """Link controls: gang <member> <member> ...  (members: inN, outN, xpI:O)"""
        tokens = arg.strip().split()
        if len(tokens) < 2:
            self._print("Usage: gang <member> <member> ...  (inN, outN, xpI:O)")
            return
        try:
            members = [self._parse_member(t) for t in tokens]
        except ValueError as e:
            self._print(f"Error: {e}")
            return
        gang_id = self.matrix.create_gang(members)
        self._print(f"  gang {gang_id}: {' '.join(self._describe_member(m) for m in members)}")

    def do_ungang(self, arg):
        """Remove a gang: ungang <id>"""
        try:
            gang_id = int(arg.strip())
        except ValueError:
            self._print("Usage: ungang <id>")
            return
        if self.matrix.remove_gang(gang_id):
            self._print("  Removed.")
        else:
            self._print(f"Error: no gang {gang_id}")

    def do_gangs(self, arg):
        """List gangs."""
        gangs = self.matrix.gangs
        if not gangs:
            self._print("  No gangs.")
            return
        for gang_id, members in gangs.items():
            self._print(f"  [{gang_id}] {' '.join(self._describe_member(m) for m in members)}")

    # -- queries -------------------------------------------------------------

    def do_gain(self, arg):
        """Effective gain: gain <in> <out>"""
        parts = arg.strip().split()
        if len(parts) < 2:
            self._print("Usage: gain <in> <out>")
            return
        try:
            inp = self._input(parts[0])
            out = self._output(parts[1])
        except ValueError as e:
            self._print(f"Error: {e}")
            return
        gain = self.matrix.calculate_gain(inp, out)
        self._print(f"  {inp + 1}>{out + 1}: {gain:.4f} ({_format_db(gain_to_db(gain))} dB)")

    def do_routes(self, arg):
        """Show routes that currently pass signal."""
        routes = self.matrix.get_active_routes()
        if not routes:
            self._print("  No active routes.")
            return
        for r in routes:
            self._print(f"  in {r.input + 1} -> out {r.output + 1}  "
                        f"gain={r.gain:.4f} ({_format_db(r.gain_db)} dB)")

    def do_show(self, arg):
        """Show the matrix grid."""
        m = self.matrix
        any_in_solo = any(m.is_input_soloed(i) for i in range(m.num_inputs))
        any_out_solo = any(m.is_output_soloed(o) for o in range(m.num_outputs))

        def flags(muted, soloed):
            return ("M" if muted else " ") + ("S" if soloed else " ")

        self._print(f"  {m.name}  main {_format_db(m.main_level)} dB")
        header = "".join(
            f" {o + 1:>3}{flags(m.is_output_muted(o), m.is_output_soloed(o))}"
            f"{_format_db(m.get_output_level(o)):>6}"
            for o in range(m.num_outputs)
        )
        self._print(f"  {'':<14}{header}")
        for i in range(m.num_inputs):
            audible = not m.is_input_muted(i) and (not any_in_solo or m.is_input_soloed(i))
            row = "".join(f" {_format_db(m.get_crosspoint(i, o)):>11}" for o in range(m.num_outputs))
            self._print(f"  {'' if audible else 'x'}{i + 1:>2}"
                        f"{flags(m.is_input_muted(i), m.is_input_soloed(i))}"
                        f"{_format_db(m.get_input_level(i)):>8} {row}")
        if any_out_solo:
            self._print("  (output solo active)")

    def do_state(self, arg):
        """Dump the full state as JSON."""
        self._print(json.dumps(self.matrix.get_state(), indent=2))

    # -- bulk operations -----------------------------------------------------

    def do_clear(self, arg):
        """Reset everything, including gangs."""
        self.matrix.clear()
        self._print("  Cleared.")

    def do_silent(self, arg):
        """Disconnect every crosspoint."""
        self.matrix.set_silent()
        self._print("  All crosspoints off.")

    def do_unity(self, arg):
        """Connect the diagonal at 0 dB."""
        self.matrix.set_unity()
        self._print(f"  Diagonal set ({min(self.matrix.num_inputs, self.matrix.num_outputs)}).")

    # -- audio ---------------------------------------------------------------

    def do_audio_start(self, arg):
        """Start audio: audio_start [device]"""
        dev = arg.strip() or None
        if dev and dev.isdigit():
            dev = int(dev)
        try:
            self.host.start_audio(dev)
        except Exception as e:
            self._print(f"Error: {e}")

    def do_audio_stop(self, arg):
        """Stop audio."""
        self.host.stop_audio()

    def do_devices(self, arg):
        """List audio devices."""
        if HAS_SOUNDDEVICE:
            self._print(sd.query_devices())
        else:
            self._print("  sounddevice not installed")

    # -- session -------------------------------------------------------------

    def do_save(self, arg):
        """Save session: save [path]"""
        path = arg.strip() or None
        try:
            saved = self.host.save_session(path)
            self._print(f"  Saved to {saved}")
        except OSError as e:
            self._print(f"Error: {e}")

    def do_restore(self, arg):
        """Restore session: restore [path]"""
        path = arg.strip() or None
        try:
            restored = self.host.restore_session(path)
        except (OSError, ValueError) as e:
            self._print(f"Error: {e}")
            return
        self._print("  Restored." if restored else "  Nothing to restore.")

    # -- status --------------------------------------------------------------

    def do_status(self, arg):
        """Overall status."""
        m = self.matrix
        self._print("=== cuematrix Status ===")
        self._print(f"  Matrix : {m.name} ({m.num_inputs} in x {m.num_outputs} out)")
        self._print(f"  Audio  : {'RUNNING' if self.host.engine.running else 'STOPPED'}"
                    f"  (sr={self.host.sample_rate} buf={self.host.buffer_size})")
        self._print(f"  Routes : {len(m.get_active_routes())} active")
        self._print(f"  Gangs  : {len(m.gangs)}")
        self._print(f"  Session: {self.host.session_path}")

    def do_deps(self, arg):
        """Check dependencies."""
        self._print(f"  sounddevice: {'OK' if HAS_SOUNDDEVICE else 'MISSING'}")

    def do_quit(self, arg):
        """Exit the current CLI session."""
        if self._owns_host:
            self.host.shutdown()
        return True

    do_exit = do_quit
    do_EOF = do_quit

