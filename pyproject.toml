[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "distwt"
version = "0.1.0"
description = "Building blocks for distributed wavelet tree and wavelet matrix construction, with the workers simulated in one process"
requires-python = ">=3.10"
dependencies = []
keywords = ["wavelet tree", "wavelet matrix", "histogram", "bit vector", "text indexing"]
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
    "Topic :: Text Processing :: Indexing",
]

[project.optional-dependencies]
test = ["pytest", "hypothesis"]

[project.scripts]
distwt-histogram = "distwt.histogram_tool:main"
distwt-process = "distwt.process_tool:main"

[tool.hatch.build.targets.wheel]
packages = ["distwt"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 88
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
