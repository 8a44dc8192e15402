[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "tunefinder"
version = "0.1.0"
description = "Audio fingerprinting and song matching against an SQLite song store"
requires-python = ">=3.10"
keywords = ["audio", "fingerprint", "spectrogram", "music", "recognition"]
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
    "Topic :: Multimedia :: Sound/Audio :: Analysis",
]
dependencies = [
    "numpy",
]

[project.optional-dependencies]
test = [
    "pytest",
    "pytest-asyncio",
]

[tool.hatch.build.targets.wheel]
packages = ["tunefinder"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
