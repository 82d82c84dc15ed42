import sys
from unittest import mock

import pytest

from bazelwatch.flags import (
    ParsedArgs,
    apply_default_bazel_args,
    is_overrideable,
    is_overrideable_bazel_flag,
    is_overrideable_startup_flag,
    is_terminal,
    parse_args,
    set_ulimit,
    usage_text,
)


@pytest.mark.parametrize(
    "given, targets, startup_args, bazel_args, args",
    [
        ([], [], [], [], []),
        (["//my/target"], ["//my/target"], [], [], []),
        (["--", "--my_program_flag"], [], [], [], ["--my_program_flag"]),
        (
            [
                "--bazelrc=/home/libsamek/bazelrc",
                "--nohome_rc",
                "--output_base=/tmp/test-output-base",
            ],
            [],
            [
                "--bazelrc=/home/libsamek/bazelrc",
                "--nohome_rc",
                "--output_base=/tmp/test-output-base",
            ],
            [],
            [],
        ),
        (["--test_output=streaming"], [], [], ["--test_output=streaming"], []),
        (
            ["--test_output=streaming", "--", "--my_program_flag"],
            [],
            [],
            ["--test_output=streaming"],
            ["--my_program_flag"],
        ),
    ],
)
def test_parse_args(given, targets, startup_args, bazel_args, args):
    parsed = parse_args(given)
    assert parsed == ParsedArgs(targets, startup_args, bazel_args, args)


def test_parse_args_after_double_dash_keeps_everything():
    parsed = parse_args(["//a", "--", "--", "//b", "--nohome_rc"])
    assert parsed.targets == ["//a"]
    assert parsed.startup_args == []
    assert parsed.args == ["--", "//b", "--nohome_rc"]


@pytest.mark.parametrize(
    "arg, expected",
    [
        ("--test", False),
        ("--i_love_ponies", False),
        ("--test_output", False),
        ("--test_output=streamed", True),
        ("--test_output_with_mooses=false", False),
    ],
)
def test_is_overrideable_with_custom_list(arg, expected):
    assert is_overrideable(arg, ["--test_output="]) is expected


def test_is_overrideable_bazel_flag_defaults():
    assert is_overrideable_bazel_flag("--test_output=streamed") is True
    assert is_overrideable_bazel_flag("--//my:setting=1") is True
    assert is_overrideable_bazel_flag("//my/target") is False


def test_is_overrideable_startup_flag():
    assert is_overrideable_startup_flag("--output_base=/tmp/x") is True
    assert is_overrideable_startup_flag("--test_output=all") is False


def test_apply_default_bazel_args_keeps_explicit_isatty():
    given = ["--isatty=0", "--keep_going"]
    assert apply_default_bazel_args(given, True) == given


@pytest.mark.parametrize("is_tty, flag", [(True, "--isatty=1"), (False, "--isatty=0")])
def test_apply_default_bazel_args_adds_isatty(is_tty, flag):
    given = ["--keep_going"]
    assert apply_default_bazel_args(given, is_tty) == ["--keep_going", flag]
    assert given == ["--keep_going"]


def test_is_terminal_false_on_windows():
    with mock.patch.object(sys, "platform", "win32"):
        assert is_terminal() is False


def test_is_terminal_follows_termios():
    import termios

    with mock.patch.object(sys, "platform", "linux"):
        with mock.patch("termios.tcgetattr", return_value=[]):
            assert is_terminal() is True
        with mock.patch("termios.tcgetattr", side_effect=termios.error(25, "no tty")):
            assert is_terminal() is False


def test_set_ulimit_none_on_windows():
    with mock.patch.object(sys, "platform", "win32"):
        assert set_ulimit() is None


def test_set_ulimit_darwin_clamps():
    import resource

    with mock.patch.object(sys, "platform", "darwin"), mock.patch(
        "resource.getrlimit", return_value=(256, resource.RLIM_INFINITY)
    ), mock.patch("resource.setrlimit") as setter:
        assert set_ulimit() == 10240
    setter.assert_called_once_with(
        resource.RLIMIT_NOFILE, (10240, resource.RLIM_INFINITY)
    )


def test_set_ulimit_raises_soft_to_hard_on_linux():
    import resource

    with mock.patch.object(sys, "platform", "linux"), mock.patch(
        "resource.getrlimit", return_value=(1024, 4096)
    ), mock.patch("resource.setrlimit") as setter:
        assert set_ulimit() == 4096
    setter.assert_called_once_with(resource.RLIMIT_NOFILE, (4096, 4096))


def test_set_ulimit_error_is_oserror():
    with mock.patch.object(sys, "platform", "linux"), mock.patch(
        "resource.getrlimit", return_value=(1024, 4096)
    ), mock.patch("resource.setrlimit", side_effect=ValueError("not allowed")):
        with pytest.raises(OSError):
            set_ulimit()


def test_usage_text_lists_flags():
    text = usage_text("Development", "  -debounce duration")
    assert text.startswith("iBazel - Version Development")
    assert "  --bazelrc\n  --home_rc" in text
    assert "  --//\n  --no//" in text
    assert text.endswith("iBazel flags:\n  -debounce duration")