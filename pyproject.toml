[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "httpaddon"
version = "0.1.0"
description = "Building blocks for request-driven HTTP autoscaling: request-rate buckets, queue counters, host/path routing tables and endpoint helpers."
requires-python = ">=3.10"
dependencies = []
keywords = ["http", "autoscaling", "routing", "queue", "rps", "endpoints"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: WWW/HTTP",
    "Topic :: System :: Distributed Computing",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["httpaddon"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
