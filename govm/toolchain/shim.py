"""
Shim dispatcher.

The ``go`` and ``gofmt`` shims placed early on PATH hand every invocation to
this module, which resolves the version for the current directory and runs
the real binary from ``<root>/versions/<version>/bin/`` with the original
arguments, environment and standard streams.

Resolution is repeated on every invocation: the working directory,
environment or marker files may change between two commands in the same
shell.

Exit codes:
    EXIT_NOT_CONFIGURED (3)      no usable version configured
    EXIT_NOT_INSTALLED (4)       version configured but not installed
    EXIT_COMMAND_NOT_FOUND (127) version lacks the requested binary
    anything else                the wrapped command's own status
"""

import logging
import os
import shlex
import signal
import subprocess
import sys
import threading
from pathlib import Path
from typing import List, Mapping, Optional, Sequence, TextIO, Tuple

from govm.core.config import GO_BINARIES, load_config
from govm.core.exceptions import (
    CommandNotFoundError,
    ConfigurationError,
    NotInstalledError,
)
from govm.core.filesystem import atomic_write, is_executable, make_executable
from govm.core.store import VersionStore
from govm.toolchain.resolver import Resolved, Unresolved, VersionResolver

logger = logging.getLogger(__name__)

EXIT_NOT_CONFIGURED = 3
EXIT_NOT_INSTALLED = 4
EXIT_EXEC_FAILED = 126
EXIT_COMMAND_NOT_FOUND = 127

FORWARDED_SIGNALS = (signal.SIGINT, signal.SIGTERM, signal.SIGHUP, signal.SIGQUIT)
KEYBOARD_SIGNALS = (signal.SIGINT, signal.SIGQUIT)

SHIM_HEADER = "# Shim created by govm - DO NOT EDIT"

SHIM_TEMPLATE = """#!/bin/sh
{header}
# This shim intercepts calls to '{binary}' and delegates to the selected Go version

exec {launcher} exec {binary_quoted} "$@"
"""


class ShimDispatcher:
    """
    Run a toolchain command with the version resolved for a directory.

    Args:
        store: Version store to locate binaries in
        resolver: Version resolver (default: one over ``store`` and os.environ)
        mode: ``"exec"`` replaces the current process (the shim path);
            ``"spawn"`` runs the command as a child, forwards signals and
            returns its exit status
        environ: Environment passed to the child (default: os.environ)
        stderr: Stream for failure messages (default: sys.stderr)

    Example:
        >>> dispatcher = ShimDispatcher(store, mode="spawn")
        >>> dispatcher.dispatch("go", ["version"])
        go version go1.22.0 linux/amd64
        0
    """

    def __init__(
        self,
        store: VersionStore,
        resolver: Optional[VersionResolver] = None,
        mode: str = "exec",
        environ: Optional[Mapping[str, str]] = None,
        stderr: Optional[TextIO] = None,
    ):
        if mode not in ("exec", "spawn"):
            raise ValueError(f"Unknown dispatch mode: {mode}")

        self.store = store
        self.environ = os.environ if environ is None else environ
        self.resolver = resolver or VersionResolver(store, self.environ)
        self.mode = mode
        self.stderr = stderr

    def locate(self, command: str, cwd: Optional[Path] = None) -> Tuple[Resolved, Path]:
        """
        Resolve the version and find the binary for a command.

        Returns:
            Tuple of (Resolved, binary path)

        Raises:
            ConfigurationError: If no usable version is configured
            NotInstalledError: If the configured version is not installed
            CommandNotFoundError: If the version has no such binary
        """
        resolution = self.resolver.resolve(cwd)

        if isinstance(resolution, Unresolved):
            if resolution.version is not None:
                raise NotInstalledError(resolution.version)
            raise ConfigurationError(
                resolution.reason,
                path=Path(resolution.origin) if resolution.origin else None,
            )

        if not self.store.is_installed(resolution.version):
            raise NotInstalledError(resolution.version)

        binary = self.store.bin_path(resolution.version, command)
        if not is_executable(binary):
            raise CommandNotFoundError(command, resolution.version)

        return resolution, binary

    def dispatch(
        self, command: str, args: Sequence[str], cwd: Optional[Path] = None
    ) -> int:
        """
        Run ``command`` with ``args`` using the resolved version.

        In exec mode this only returns on failure.

        Returns:
            Exit status to terminate with
        """
        try:
            resolution, binary = self.locate(command, cwd)
        except NotInstalledError as e:
            self._fail(f"{e} (required by current configuration)")
            return EXIT_NOT_INSTALLED
        except ConfigurationError as e:
            self._fail(
                f"{e}. Run 'govm global <version>' or create a .go-version file."
            )
            return EXIT_NOT_CONFIGURED
        except CommandNotFoundError as e:
            self._fail(str(e))
            return EXIT_COMMAND_NOT_FOUND

        env = dict(self.environ)
        env["GOROOT"] = str(self.store.path_of(resolution.version))
        argv = [str(binary), *args]

        if self.mode == "exec":
            try:
                os.execve(binary, argv, env)
            except OSError as e:
                self._fail(f"Failed to execute {binary}: {e}")
                return EXIT_EXEC_FAILED

        return self._spawn(argv, env)

    def _spawn(self, argv: List[str], env: Mapping[str, str]) -> int:
        try:
            process = subprocess.Popen(argv, env=env)
        except OSError as e:
            self._fail(f"Failed to execute {argv[0]}: {e}")
            return EXIT_EXEC_FAILED

        previous_handlers = {}

        def forward(signum, frame):
            # The child shares our process group, so keyboard signals from
            # the terminal have already reached it
            if signum in KEYBOARD_SIGNALS and terminal_delivers_to_child():
                return
            process.send_signal(signum)

        # Signal handlers can only be installed from the main thread
        if threading.current_thread() is threading.main_thread():
            for signum in FORWARDED_SIGNALS:
                previous_handlers[signum] = signal.signal(signum, forward)

        try:
            returncode = process.wait()
        finally:
            for signum, handler in previous_handlers.items():
                signal.signal(signum, handler)

        if returncode < 0:
            return 128 - returncode
        return returncode

    def _fail(self, message: str) -> None:
        stream = self.stderr or sys.stderr
        print(f"govm: {message}", file=stream)


def terminal_delivers_to_child() -> bool:
    """Is our process group the foreground group of the controlling terminal?"""
    try:
        return os.tcgetpgrp(sys.stdin.fileno()) == os.getpgrp()
    except (AttributeError, OSError, ValueError):
        return False


# ============================================================================
# Shim scripts
# ============================================================================


def default_launcher() -> List[str]:
    """Command line that runs the govm management command."""
    return [sys.executable, "-m", "govm"]


def render_shim(binary: str, launcher: Optional[Sequence[str]] = None) -> str:
    launcher = default_launcher() if launcher is None else launcher
    return SHIM_TEMPLATE.format(
        header=SHIM_HEADER,
        binary=binary,
        launcher=" ".join(shlex.quote(part) for part in launcher),
        binary_quoted=shlex.quote(binary),
    )


def create_shim(
    binary: str, shims_dir: Path, launcher: Optional[Sequence[str]] = None
) -> Path:
    """Write one executable shim script."""
    shim_path = Path(shims_dir) / binary
    atomic_write(shim_path, render_shim(binary, launcher))
    make_executable(shim_path)
    logger.debug(f"Created shim: {shim_path}")
    return shim_path


def create_all_shims(
    shims_dir: Path, launcher: Optional[Sequence[str]] = None
) -> List[Path]:
    """Force-recreate the shim for every toolchain binary."""
    return [create_shim(binary, shims_dir, launcher) for binary in GO_BINARIES]


def ensure_shims(
    shims_dir: Path, launcher: Optional[Sequence[str]] = None
) -> List[Path]:
    """
    Create shims that are missing or point at a different launcher.

    Returns:
        Paths of shims that were (re)written
    """
    written = []
    for binary in GO_BINARIES:
        shim_path = Path(shims_dir) / binary
        expected = render_shim(binary, launcher)
        try:
            current = shim_path.read_text(encoding="utf-8")
        except OSError:
            current = None

        if current != expected or not is_executable(shim_path):
            written.append(create_shim(binary, shims_dir, launcher))

    return written


def main(argv: Optional[Sequence[str]] = None) -> None:
    """
    Entry point for the ``govm-shim`` console script.

    Invoked through a link named after a toolchain binary (``go``), the
    command is taken from argv[0]; otherwise from the first argument:
    ``govm-shim go build ./...``.
    """
    argv = list(sys.argv if argv is None else argv)
    invoked_as = os.path.basename(argv[0]) if argv else ""

    if invoked_as in GO_BINARIES:
        command, args = invoked_as, argv[1:]
    elif len(argv) > 1:
        command, args = argv[1], argv[2:]
    else:
        print("usage: govm-shim COMMAND [ARGS...]", file=sys.stderr)
        sys.exit(2)

    logging.basicConfig(level=logging.WARNING, format="govm: %(message)s")

    try:
        config = load_config()
    except ConfigurationError as e:
        print(f"govm: {e}", file=sys.stderr)
        sys.exit(EXIT_NOT_CONFIGURED)

    dispatcher = ShimDispatcher(VersionStore(config.root))
    sys.exit(dispatcher.dispatch(command, args))
