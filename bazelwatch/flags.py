"""Command-line argument handling for the watcher: sorting user arguments
into targets, startup flags, command flags and program arguments."""

from __future__ import annotations

import sys
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

# Prefixes are listed in the order they are shown in the help text.
OVERRIDEABLE_STARTUP_FLAGS: tuple[str, ...] = tuple(
    "--bazelrc --home_rc --nohome_rc --output_base".split()
)

OVERRIDEABLE_BAZEL_FLAGS: tuple[str, ...] = tuple(
    """
    --action_env --announce_rc --aspects --build_tag_filters=
    --build_tests_only --check_visibility= --compilation_mode
    --compile_one_dependency --config= --copt= --curses= --cxxopt -c
    --define= --dynamic_mode= --features= --flaky_test_attempts=
    --host_jvmopt --isatty= --jvmopt --keep_going -k --nocache_test_results
    --nostamp --output_groups= --override_repository= --platforms
    --repo_env --runs_per_test= --run_under= --show_result= --stamp
    --strategy= --target_pattern_file= --test_arg= --test_env=
    --test_filter= --test_lang_filters= --test_output= --test_tag_filters=
    --test_timeout=
    --// --no//
    """.split()
)
# The last two prefixes cover custom Starlark build settings.

# OPEN_MAX on macOS; the hard limit it reports is not usable as a soft limit.
_DARWIN_OPEN_MAX = 10240

_TTY_FLAG = "--isatty="

_EXAMPLES: tuple[tuple[str, str], ...] = (
    ("test", "//path/to/my/testing:target"),
    ("test", "//path/to/my/testing/targets/..."),
    ("run", "//path/to/my/runnable:target -- --arguments --for_your=binary"),
    ("build", "//path/to/my/buildable:target"),
)


@dataclass
class ParsedArgs:
    """User arguments split by the role they play in a Bazel invocation."""

    targets: list[str] = field(default_factory=list)
    startup_args: list[str] = field(default_factory=list)
    bazel_args: list[str] = field(default_factory=list)
    args: list[str] = field(default_factory=list)


def is_overrideable(arg: str, overrideables: Iterable[str]) -> bool:
    """Return True if ``arg`` starts with any of the given flag prefixes."""
    return any(arg.startswith(prefix) for prefix in overrideables)


def is_overrideable_startup_flag(arg: str) -> bool:
    """Return True if ``arg`` is a startup flag that may be passed through."""
    return is_overrideable(arg, OVERRIDEABLE_STARTUP_FLAGS)


def is_overrideable_bazel_flag(arg: str) -> bool:
    """Return True if ``arg`` is a command flag that may be passed through."""
    return is_overrideable(arg, OVERRIDEABLE_BAZEL_FLAGS)


def parse_args(args: Iterable[str]) -> ParsedArgs:
    """Sort arguments into targets, startup flags, command flags and the
    arguments following ``--`` that go to the program being run."""
    parsed = ParsedArgs()
    tokens = iter(args)
    for arg in tokens:
        if arg == "--":
            parsed.args.extend(tokens)
            break
        if is_overrideable_startup_flag(arg):
            parsed.startup_args.append(arg)
        elif is_overrideable_bazel_flag(arg):
            parsed.bazel_args.append(arg)
        else:
            parsed.targets.append(arg)
    return parsed


def apply_default_bazel_args(bazel_args: Sequence[str], is_tty: bool) -> list[str]:
    """Add an ``--isatty`` flag matching the terminal unless one is present."""
    result = list(bazel_args)
    if not any(arg.startswith(_TTY_FLAG) for arg in result):
        result.append(_TTY_FLAG + ("1" if is_tty else "0"))
    return result


def is_terminal() -> bool:
    """Return True when both standard output and standard error are terminals."""
    if sys.platform == "win32":
        return False
    import termios

    try:
        for fd in (1, 2):
            termios.tcgetattr(fd)
    except (termios.error, OSError):
        return False
    return True


def set_ulimit() -> int | None:
    """Raise the soft open-file limit to the hard limit.

    Returns the new soft limit, or None where the platform has no such limit.
    Raises OSError if the limit cannot be read or changed.
    """
    if sys.platform == "win32":
        return None
    import resource

    try:
        _, hard = resource.getrlimit(resource.RLIMIT_NOFILE)
        soft = hard
        if sys.platform == "darwin" and (
            hard == resource.RLIM_INFINITY or hard > _DARWIN_OPEN_MAX
        ):
            soft = _DARWIN_OPEN_MAX
        resource.setrlimit(resource.RLIMIT_NOFILE, (soft, hard))
    except ValueError as exc:
        raise OSError(str(exc)) from exc
    return soft


def _indented(items: Iterable[str]) -> str:
    return "\n".join(f"  {item}" for item in items)


def usage_text(version: str, ibazel_flags_help: str) -> str:
    """Build the help message shown for missing or unknown commands."""
    examples = "\n".join(f"ibazel {cmd} {rest}" for cmd, rest in _EXAMPLES)
    sections = [
        f"iBazel - Version {version}",
        "A file watcher for Bazel. It runs, builds or tests the given targets\n"
        "again each time one of the source files they use is changed.",
        "Usage:",
        "ibazel build|test|run [flags] targets...",
        "Example:",
        examples,
        "Supported Bazel startup flags:\n" + _indented(OVERRIDEABLE_STARTUP_FLAGS),
        "Supported Bazel command flags:\n" + _indented(OVERRIDEABLE_BAZEL_FLAGS),
        "More flags can be allowed through in bazelwatch/flags.py.",
        "iBazel flags:\n" + ibazel_flags_help,
    ]
    return "\n\n".join(sections)