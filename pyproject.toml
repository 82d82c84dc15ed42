[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "bazelwatch"
version = "0.1.0"
description = "Building blocks for a file-watching driver of Bazel: argument sorting, binary discovery and command execution"
requires-python = ">=3.10"
dependencies = []
keywords = ["bazel", "bazelisk", "build", "watch"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Build Tools",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["bazelwatch"]

[tool.hatch.build.targets.sdist]
include = ["bazelwatch", "tests", "pyproject.toml", "README.md"]

[tool.pytest.ini_options]
addopts = "-ra"
