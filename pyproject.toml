[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "warpnet"
version = "0.1.0"
description = "Building blocks of a decentralized social network node: event models, encrypted websocket sessions, authentication, retries and key helpers"
requires-python = ">=3.10"
keywords = [
    "social-network",
    "p2p",
    "websocket",
    "diffie-hellman",
    "aes-gcm",
    "retry",
]
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
    "Topic :: Internet",
    "Topic :: Security :: Cryptography",
]
dependencies = [
    "cryptography",
    "semver",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["warpnet"]

[tool.hatch.build.targets.sdist]
include = [
    "warpnet",
    "tests",
    "README.md",
    "pyproject.toml",
]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
