[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "rlkit"
version = "0.1.0"
description = "Building blocks for deep reinforcement learning: prioritized replay, exploration schedules, normalization, dropout and a priority thread pool."
requires-python = ">=3.10"
dependencies = []
keywords = [
    "reinforcement-learning",
    "replay-buffer",
    "prioritized-experience-replay",
    "exploration",
    "normalization",
    "dropout",
    "thread-pool",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: Science/Research",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: Artificial Intelligence",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["rlkit"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
