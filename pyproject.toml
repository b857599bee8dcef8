[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "audiodevmon"
version = "0.1.0"
description = "Audio device monitoring with priority-based automatic switching"
requires-python = ">=3.11"
keywords = ["audio", "device", "monitor", "priority", "switching"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: End Users/Desktop",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Multimedia :: Sound/Audio",
    "Typing :: Typed",
]
dependencies = [
    "tomli-w",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["audiodevmon"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
