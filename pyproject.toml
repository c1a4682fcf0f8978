[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "meshproto"
version = "0.1.0"
description = "Encoding, decoding and reassembly of 32-byte packets for a small tree-shaped device mesh protocol"
requires-python = ">=3.10"
dependencies = []
keywords = ["mesh", "protocol", "packets", "crc", "networking", "embedded"]
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
    "Topic :: System :: Networking",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["meshproto"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
