[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "stringscript"
version = "0.1.0"
description = "Run request/response string scripts against a responder over a serial port."
requires-python = ">=3.10"
keywords = ["serial", "script", "request-response", "console", "monitor"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Terminals :: Serial",
]
dependencies = [
    "pyserial",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
stringscript = "stringscript.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["stringscript"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
