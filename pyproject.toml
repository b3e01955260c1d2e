[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "distribyted"
version = "0.1.0"
description = "Read-only virtual filesystem over torrents, zip archives and in-memory files, with WebDAV and HTTP file adapters."
requires-python = ">=3.10"
keywords = ["torrent", "filesystem", "virtual filesystem", "webdav", "zip", "magnet"]
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
    "Topic :: System :: Filesystems",
    "Typing :: Typed",
]
dependencies = [
    "pyyaml>=6.0",
]

[project.optional-dependencies]
test = [
    "pytest>=7.0",
]

[tool.hatch.build.targets.wheel]
packages = ["distribyted"]

[tool.hatch.build.targets.sdist]
include = ["distribyted", "tests", "README.md"]

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
warn_redundant_casts = true
