"""Argument sorting, binary discovery and command execution for running Bazel from a file watcher."""

__version__ = "0.1.0"
__all__ = ["bazel", "buffer", "flags"]