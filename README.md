# bazelwatch

Python building blocks for driving Bazel from a file watcher: sorting
command-line arguments into targets and flags, locating the Bazel (or
Bazelisk) binary, and running Bazel commands while capturing their output.

## Modules

### `bazelwatch.flags`

Sorts the arguments given to a watcher invocation.

- `parse_args(args)` splits arguments into a `ParsedArgs` dataclass with the
  fields `targets`, `startup_args`, `bazel_args` and `args`. Everything after
  the first `--` goes into `args`, to be handed to the program being run.
- `is_overrideable_startup_flag(arg)` and `is_overrideable_bazel_flag(arg)`
  tell whether an argument starts with one of the prefixes listed in
  `OVERRIDEABLE_STARTUP_FLAGS` or `OVERRIDEABLE_BAZEL_FLAGS`;
  `is_overrideable(arg, overrideables)` does the same check against any
  collection of prefixes.
- `apply_default_bazel_args(bazel_args, is_tty)` returns a new list with
  `--isatty=1` or `--isatty=0` appended, unless an `--isatty=` flag is
  already present.
- `is_terminal()` reports whether both standard output and standard error are
  terminals (always `False` on Windows).
- `set_ulimit()` raises the soft limit on open files to the hard limit (capped
  at 10240 on macOS) and returns the new soft limit; it returns `None` on
  Windows and raises `OSError` if the limit cannot be changed.
- `usage_text(version, ibazel_flags_help)` builds the help text, including
  usage examples and the lists of supported startup and command flags.

```python
from bazelwatch.flags import parse_args, apply_default_bazel_args

parsed = parse_args(["//app:server", "--test_output=streamed", "--", "--port=8080"])
# parsed.targets == ["//app:server"]
# parsed.bazel_args == ["--test_output=streamed"]
# parsed.args == ["--port=8080"]
apply_default_bazel_args(parsed.bazel_args, is_tty=False)
# ["--test_output=streamed", "--isatty=0"]
```

### `bazelwatch.bazel`

Locates and runs Bazel.

- `find_bazel(bazel_path=None, argv0=None)` picks the binary to run: an
  explicit path wins, then a Bazelisk or Bazel installed through npm next to
  the program named by `argv0` (default `sys.argv[0]`), then `bazelisk` or
  `bazel` on `PATH`, and finally plain `"bazel"`.
- `bazelisk_npm_path(ibazel_bin_path)` and `bazel_npm_path(ibazel_bin_path)`
  perform the npm lookups and raise `BazelError` when nothing is found.
- `process_info(info)` turns the output of `bazel info` into a dictionary,
  skipping blank lines and the server start-up notice, and raises
  `InfoFormatError` on a line that is not a `key: value` pair.
- `windows_command_line(bazel_path, args)` builds a command line string with
  the binary path double quoted, so paths containing spaces work on Windows.
- `Bazel(bazel_path=None, args=(), startup_args=())` runs one Bazel process
  at a time:
  - `command_args(command, *args)` returns the argument list that would be
    passed; `--color=yes` is added when output is echoed (`write_to_stdout`
    or `write_to_stderr`) and no `--color` flag was given.
  - `info()` runs `bazel info` and returns the parsed dictionary.
  - `build(*args)` and `test(*args)` return stdout followed by stderr as
    bytes.
  - `run(*args)` echoes the command's output to the terminal and returns what
    it wrote to stderr.
  - `wait()` waits for the last started command; `cancel()` kills it and
    returns whether one was running; `running` tells whether one is still
    going.
  - A command that cannot be started or exits with a non-zero status raises
    `BazelError`, whose `returncode` and `output` attributes carry the
    details.

```python
from bazelwatch.bazel import process_info

process_info("output_base: /tmp/out\nrelease: 7.0.0")
# {'output_base': '/tmp/out', 'release': '7.0.0'}
```

### `bazelwatch.buffer`

`SyncBuffer` is a thread-safe byte buffer. `write(data)` appends bytes (or
UTF-8 encoded text), `read(size=-1)` removes and returns bytes from the
front, and `getvalue()` returns the unread contents without consuming them.
`len()` and `str()` work on it too. `Bazel` uses it to collect a
subprocess's output while another thread may inspect it.

## What this package does not do

It provides the pieces but not the watcher itself: there is no loop that
watches source files and re-runs Bazel, no installed command, no live-reload
server, and no support for `bazel query` or `bazel cquery`.

## Tests

The test suite uses pytest, available through the `test` extra.