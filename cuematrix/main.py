"""Entry point and argument parsing for cuematrix.

Subcommands
-----------
shell   Open an interactive session on a matrix (optionally with live audio).
routes  Print the active routes stored in a session file and exit.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys

from cuematrix.host import MatrixHost
from cuematrix.logging_setup import configure_logging
from cuematrix.matrix import Matrix
from cuematrix.paths import DEFAULT_SESSION_PATH


logger = logging.getLogger(__name__)


# -- shared helpers ----------------------------------------------------------

def _add_matrix_args(parser: argparse.ArgumentParser):
    """Add arguments describing the matrix and its session file."""
    parser.add_argument("--inputs", type=int, default=2, help="Number of matrix inputs")
    parser.add_argument("--outputs", type=int, default=2, help="Number of matrix outputs")
    parser.add_argument("--name", default="Matrix", help="Matrix name")
    parser.add_argument("--session", default=None,
                        help=f"Session file path (default: {DEFAULT_SESSION_PATH})")
    parser.add_argument("--strict", action="store_true",
                        help="Reject session files whose sizes do not match the matrix")
    parser.add_argument("--log-level", default=None,
                        help="Log level (overrides LOG_LEVEL)")


def _boot_host(args) -> MatrixHost:
    """Create a MatrixHost from parsed arguments and optionally restore state."""
    host = MatrixHost(num_inputs=args.inputs, num_outputs=args.outputs, name=args.name,
                      sample_rate=args.sr, buffer_size=args.buf,
                      session_path=args.session)

    if not args.no_restore:
        try:
            host.restore_session(strict=args.strict)
        except Exception as e:
            logger.warning("session restore failed: %s", e)

    if args.audio:
        device = args.device
        if isinstance(device, str) and device.isdigit():
            device = int(device)
        try:
            host.start_audio(device)
        except Exception as e:
            logger.warning("audio start failed: %s", e)

    return host


# -- subcommand handlers -----------------------------------------------------

def _cmd_shell(args):
    """Run the interactive shell."""
    from cuematrix.cli import MatrixCLI

    level = configure_logging(default_level="WARNING", override=args.log_level)
    logger.info("cuematrix shell starting (log level: %s)", logging.getLevelName(level))

    host = _boot_host(args)
    try:
        MatrixCLI(host).cmdloop()
    except KeyboardInterrupt:
        host.shutdown()


def _cmd_routes(args):
    """Print active routes of a saved session without keeping anything."""
    from cuematrix import session

    configure_logging(default_level="WARNING", override=args.log_level)
    matrix = Matrix(args.inputs, args.outputs, args.name)
    try:
        restored = session.restore(matrix, args.session, strict=args.strict)
    except (OSError, ValueError) as e:
        logger.error("cannot read session: %s", e)
        return 1
    if not restored:
        logger.error("no usable session at %s", args.session or DEFAULT_SESSION_PATH)
        return 1

    routes = matrix.get_active_routes()
    if args.json:
        print(json.dumps([r.to_dict() for r in routes], indent=2))
    else:
        for r in routes:
            print(f"{r.input + 1}\t{r.output + 1}\t{r.gain:.6f}\t{r.gain_db:+.2f}")
    return 0


# -- main --------------------------------------------------------------------

def main(argv=None):
    ap = argparse.ArgumentParser(
        description="cuematrix - show routing matrix with gangs, mute and solo")
    sub = ap.add_subparsers(dest="command")

    # -- shell ---------------------------------------------------------------
    sp_shell = sub.add_parser("shell", help="Open an interactive matrix session")
    _add_matrix_args(sp_shell)
    sp_shell.add_argument("--sr", type=int, default=44100, help="Sample rate")
    sp_shell.add_argument("--buf", type=int, default=512, help="Buffer size")
    sp_shell.add_argument("--audio", action="store_true",
                          help="Start the audio stream on launch")
    sp_shell.add_argument("--device", default=None, help="Audio device")
    sp_shell.add_argument("--no-restore", action="store_true",
                          help="Skip restoring the previous session on startup")
    sp_shell.set_defaults(func=_cmd_shell)

    # -- routes --------------------------------------------------------------
    sp_routes = sub.add_parser("routes", help="Print the active routes of a session file")
    _add_matrix_args(sp_routes)
    sp_routes.add_argument("--json", action="store_true", help="Emit JSON")
    sp_routes.set_defaults(func=_cmd_routes)

    args = ap.parse_args(argv)
    if args.command is None:
        ap.error("a command is required: shell or routes")
    return args.func(args) or 0


if __name__ == "__main__":
    sys.exit(main())
