[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "tm1ctl"
version = "0.1.0"
description = "Command-line control utility for TM1 v12 services: hosts, instances, databases, users and restores"
requires-python = ">=3.10"
keywords = ["tm1", "planning analytics", "cli", "database", "administration"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: System Administrators",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Database :: Front-Ends",
    "Topic :: System :: Systems Administration",
]
dependencies = [
    "click>=8.1",
    "requests>=2.28",
]

[project.optional-dependencies]
test = [
    "pytest>=7.0",
    "responses>=0.23",
]

[project.scripts]
tm1ctl = "tm1ctl.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["tm1ctl"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
ignore_missing_imports = true
