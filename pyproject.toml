[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "streamengine"
version = "0.1.0"
description = "MPEG-TS packet, PSI and PES codecs, H.264 SPS parsing and engine settings for a streaming media engine"
requires-python = ">=3.10"
dependencies = []
keywords = ["mpeg-ts", "mpegts", "pes", "pat", "pmt", "h264", "sps", "streaming"]
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
    "Topic :: Multimedia :: Video",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["streamengine"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
