[build-system]
requires = ["setuptools>=61.0"]
build-backend = "setuptools.build_meta"

[project]
name = "loomrt"
version = "0.1.0"
description = "Runtime core for the Loom pipeline language: values, scopes, operators, CSV handling, capability paths, file operations and atomic file journalling"
requires-python = ">=3.10"
dependencies = []
keywords = ["pipeline", "interpreter", "runtime", "csv", "dsl"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Interpreters",
]

[project.optional-dependencies]
test = ["pytest", "hypothesis"]

[tool.setuptools.packages.find]
include = ["loomrt*"]

[tool.pytest.ini_options]
addopts = "-ra"
