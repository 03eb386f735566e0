[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "mmchain"
version = "0.1.0"
description = "Minimizer sketching, DUST masking, seed collection and colinear anchor chaining for DNA sequence mapping"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "bioinformatics",
    "minimizer",
    "chaining",
    "dust",
    "range-minimum-query",
    "genomics",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Science/Research",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: Bio-Informatics",
    "Typing :: Typed",
]

[project.optional-dependencies]
test = [
    "pytest",
    "hypothesis",
]

[project.scripts]
mmchain-sdust = "mmchain.sdust:main"

[tool.hatch.build.targets.wheel]
packages = ["mmchain"]

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
