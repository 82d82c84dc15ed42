"""Locating the Bazel binary and running Bazel commands."""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
import sys
import threading
from collections.abc import Iterable, Sequence
from typing import IO

from bazelwatch.buffer import SyncBuffer

log = logging.getLogger(__name__)

_SERVER_STARTING = "Starting local Bazel server and connecting to it..."
_SLOW_INFO_SECONDS = 8.0
_CHUNK = 4096


class BazelError(Exception):
    """A Bazel command could not be started or did not succeed."""

    def __init__(
        self, message: str, returncode: int | None = None, output: bytes = b""
    ) -> None:
        super().__init__(message)
        self.returncode = returncode
        self.output = output


class InfoFormatError(BazelError):
    """``bazel info`` printed a line that is not a key-value pair."""


def _npm_bin_matches(parts: Sequence[str]) -> Iterable[tuple[list[str], str]]:
    """Yield (prefix, platform dir) for each node_modules/@bazel/ibazel/bin/<platform>."""
    for i in range(len(parts) - 4):
        nm, scope, pkg, directory, binary = parts[i : i + 5]
        if nm == "node_modules" and scope == "@bazel" and pkg == "ibazel" and directory == "bin":
            yield list(parts[:i]), binary


def bazel_npm_path(ibazel_bin_path: str) -> str:
    """Find a bazel binary from the @bazel/bazel npm package next to ibazel."""
    parts = ibazel_bin_path.split("/")
    for prefix, binary in _npm_bin_matches(parts):
        # ibazel is named with "amd64" while @bazel/bazel uses node arch names.
        arch = binary.replace("amd64", "x64", 1)
        directory = "/".join([*prefix, "node_modules", "@bazel", "bazel-" + arch])
        try:
            names = sorted(os.listdir(_from_slash(directory)))
        except OSError:
            continue
        for name in names:
            if name.startswith("bazel-"):
                return directory + "/" + name
    raise BazelError("bazel binary not found in @bazel/bazel package")


def bazelisk_npm_path(ibazel_bin_path: str) -> str:
    """Find a bazelisk binary from the @bazel/bazelisk npm package next to ibazel."""
    parts = ibazel_bin_path.split("/")
    for prefix, binary in _npm_bin_matches(parts):
        ext = ".exe" if binary.startswith("windows_") else ""
        name = "/".join(
            [*prefix, "node_modules", "@bazel", "bazelisk", f"bazelisk-{binary}{ext}"]
        )
        try:
            os.stat(_from_slash(name))
        except FileNotFoundError:
            continue
        return name
    raise BazelError("bazelisk binary not found in @bazel/bazelisk package")


def _to_slash(path: str) -> str:
    return path.replace(os.sep, "/") if os.sep != "/" else path


def _from_slash(path: str) -> str:
    return path.replace("/", os.sep) if os.sep != "/" else path


def find_bazel(bazel_path: str | None = None, argv0: str | None = None) -> str:
    """Choose the Bazel binary to run.

    An explicit path wins; then npm-installed bazelisk or bazel next to this
    program; then bazelisk or bazel on PATH; otherwise plain ``"bazel"``.
    """
    if bazel_path:
        return bazel_path
    program = _to_slash(argv0 if argv0 is not None else sys.argv[0])
    for lookup in (bazelisk_npm_path, bazel_npm_path):
        try:
            return _from_slash(lookup(program))
        except (BazelError, OSError):
            pass
    for name in ("bazelisk", "bazel"):
        found = shutil.which(name)
        if found:
            return found
    return "bazel"


def process_info(info: str) -> dict[str, str]:
    """Parse the ``key: value`` lines printed by ``bazel info``."""
    output: dict[str, str] = {}
    for line in info.split("\n"):
        if not line or _SERVER_STARTING in line:
            continue
        key, sep, value = line.partition(": ")
        if not sep:
            raise InfoFormatError("Bazel info returned a non key-value pair")
        output[key] = value
    return output


def windows_command_line(bazel_path: str, args: Sequence[str]) -> str:
    """Build a Windows command line with the binary path always double quoted."""
    quoted = '"' + bazel_path.replace("\\", "\\\\").replace('"', '\\"') + '"'
    return f"{quoted} {' '.join(args)}"


def _pump(source: IO[bytes], buffer: SyncBuffer, echo: IO | None) -> None:
    sink = getattr(echo, "buffer", None) if echo is not None else None
    while True:
        chunk = source.read1(_CHUNK) if hasattr(source, "read1") else source.read(_CHUNK)
        if not chunk:
            break
        buffer.write(chunk)
        if echo is not None:
            if sink is not None:
                sink.write(chunk)
                sink.flush()
            else:
                echo.write(chunk.decode("utf-8", errors="replace"))
                echo.flush()
    source.close()


class Bazel:
    """Runs Bazel commands with configured command and startup arguments."""

    def __init__(
        self,
        bazel_path: str | None = None,
        args: Sequence[str] = (),
        startup_args: Sequence[str] = (),
    ) -> None:
        self.bazel_path = bazel_path
        self.args = list(args)
        self.startup_args = list(startup_args)
        self.write_to_stdout = False
        self.write_to_stderr = False
        self._process: subprocess.Popen | None = None
        self._pumps: list[threading.Thread] = []
        self._lock = threading.Lock()

    @property
    def running(self) -> bool:
        """True while a started command has not yet exited."""
        with self._lock:
            return self._process is not None and self._process.poll() is None

    def command_args(self, command: str, *args: str) -> list[str]:
        """Arguments passed to the Bazel binary for ``command``."""
        full = [*self.startup_args, command, *args]
        if self.write_to_stderr or self.write_to_stdout:
            if not any(arg.startswith("--color") for arg in full):
                full.append("--color=yes")
        return full

    def _start(
        self, command: str, args: Sequence[str], stdin: int | None = subprocess.DEVNULL
    ) -> tuple[subprocess.Popen, SyncBuffer, SyncBuffer]:
        argv = self.command_args(command, *args)
        path = find_bazel(self.bazel_path)
        popen_args: str | list[str]
        if sys.platform == "win32":
            popen_args = windows_command_line(path, argv)
        else:
            popen_args = [path, *argv]
        try:
            process = subprocess.Popen(
                popen_args, stdin=stdin, stdout=subprocess.PIPE, stderr=subprocess.PIPE
            )
        except OSError as exc:
            raise BazelError(f"unable to start {path}: {exc}") from exc

        stdout, stderr = SyncBuffer(), SyncBuffer()
        pumps = [
            threading.Thread(
                target=_pump,
                args=(process.stdout, stdout, sys.stdout if self.write_to_stdout else None),
                daemon=True,
            ),
            threading.Thread(
                target=_pump,
                args=(process.stderr, stderr, sys.stderr if self.write_to_stderr else None),
                daemon=True,
            ),
        ]
        for pump in pumps:
            pump.start()
        with self._lock:
            self._process = process
            self._pumps = pumps
        return process, stdout, stderr

    def _finish(self, process: subprocess.Popen) -> int:
        returncode = process.wait()
        with self._lock:
            pumps = list(self._pumps)
        for pump in pumps:
            pump.join()
        return returncode

    def _execute(
        self, command: str, args: Sequence[str], stdin: int | None = subprocess.DEVNULL
    ) -> tuple[int, bytes, bytes]:
        process, stdout, stderr = self._start(command, args, stdin)
        returncode = self._finish(process)
        return returncode, stdout.getvalue(), stderr.getvalue()

    def info(self) -> dict[str, str]:
        """Run ``bazel info`` and return its key-value pairs."""
        self.write_to_stderr = False
        self.write_to_stdout = False
        timer = threading.Timer(
            _SLOW_INFO_SECONDS,
            log.warning,
            args=("Running `bazel info`... it's being a little slow",),
        )
        timer.daemon = True
        timer.start()
        try:
            returncode, out, err = self._execute("info", ())
        finally:
            timer.cancel()
        if returncode != 0:
            raise BazelError(
                f"bazel info exited with status {returncode}",
                returncode=returncode,
                output=out + err,
            )
        return process_info(out.decode("utf-8", errors="replace"))

    def _build_like(self, command: str, args: Sequence[str]) -> bytes:
        returncode, out, err = self._execute(command, [*self.args, *args])
        output = out + err
        if returncode != 0:
            raise BazelError(
                f"bazel {command} exited with status {returncode}",
                returncode=returncode,
                output=output,
            )
        return output

    def build(self, *args: str) -> bytes:
        """Run ``bazel build``; return stdout followed by stderr."""
        return self._build_like("build", args)

    def test(self, *args: str) -> bytes:
        """Run ``bazel test``; return stdout followed by stderr."""
        return self._build_like("test", args)

    def run(self, *args: str) -> bytes:
        """Build and run one target with the given arguments, echoing its
        output; return what it wrote to stderr."""
        self.write_to_stderr = True
        self.write_to_stdout = True
        returncode, out, err = self._execute("run", [*self.args, *args], stdin=None)
        if returncode != 0:
            raise BazelError(
                f"bazel run exited with status {returncode}",
                returncode=returncode,
                output=err,
            )
        return err

    def wait(self) -> int:
        """Wait for the last command to exit; raise if it failed."""
        with self._lock:
            process = self._process
        if process is None:
            raise BazelError("no command has been started")
        returncode = self._finish(process)
        if returncode != 0:
            raise BazelError(
                f"command exited with status {returncode}", returncode=returncode
            )
        return returncode

    def cancel(self) -> bool:
        """Kill the running command; return True if one was running."""
        with self._lock:
            process = self._process
        if process is None or process.poll() is not None:
            return False
        process.kill()
        return True