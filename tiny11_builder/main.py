import argparse
import signal
import sys
from contextlib import contextmanager
from pathlib import Path

from tiny11_builder import __version__
from tiny11_builder.build import Toolchain, run_build
from tiny11_builder.config.settings import BuildConfig
from tiny11_builder.logging import LoggerFactory, setup_logging
from tiny11_builder.storage.exceptions import BuildError, MissingDependencyError

# Signals that end the build the same way Ctrl-C does.
TERMINATION_SIGNALS = (signal.SIGTERM, signal.SIGHUP)


@contextmanager
def interrupt_on_termination():
    """Raise KeyboardInterrupt on SIGTERM/SIGHUP while the block runs.

    Build cleanup then unwinds as it does for Ctrl-C. Previous handlers are
    restored on exit.
    """

    def _signal_handler(signum, frame):
        raise KeyboardInterrupt(signal.Signals(signum).name)

    previous = {sig: signal.signal(sig, _signal_handler) for sig in TERMINATION_SIGNALS}
    try:
        yield
    finally:
        for sig, handler in previous.items():
            signal.signal(sig, handler)


class _ArgumentParser(argparse.ArgumentParser):
    """ArgumentParser whose usage errors exit with status 1."""

    def error(self, message):
        self.print_usage(sys.stderr)
        self.exit(1, f"{self.prog}: error: {message}\n")


def build_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(
        prog="tiny11-builder",
        description="Build a trimmed Windows 11 ISO from a stock installation ISO",
    )
    parser.add_argument("-i", "--iso", help="Windows 11 ISO file")
    parser.add_argument(
        "-s",
        "--scratch",
        help="Working directory (default: ./tiny11_work)",
    )
    parser.add_argument("-d", "--debug", action="store_true", help="Enable verbose debug output")
    parser.add_argument("--log-dir", type=Path, help="Directory for log files")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)
    setup_logging(debug=args.debug, log_dir=args.log_dir)
    log = LoggerFactory.for_system()

    config = BuildConfig.from_args(args.iso, args.scratch)
    tools = Toolchain.system(config)

    try:
        with interrupt_on_termination():
            run_build(config, tools)
    except MissingDependencyError as error:
        log.error(str(error))
        log.info(f"Install with: {error.install_hint}")
        return 1
    except BuildError as error:
        log.error(str(error))
        return 1
    except EOFError:
        log.error("No input available for the image index prompt")
        return 1
    except KeyboardInterrupt as interrupt:
        log.error(f"Interrupted by {interrupt}" if str(interrupt) else "Interrupted")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
