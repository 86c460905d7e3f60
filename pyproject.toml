[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "evoloop"
version = "0.1.0"
description = "Self-improvement loop for local Git projects: inspect, analyse quality checks, propose patches and evaluate them in a sandbox."
requires-python = ">=3.10"
dependencies = []
keywords = [
    "self-improvement",
    "code-quality",
    "patch",
    "evaluation",
    "sandbox",
    "sqlite",
    "automation",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Quality Assurance",
    "Topic :: Software Development :: Testing",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["evoloop"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
