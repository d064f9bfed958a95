[build-system]
requires = ["setuptools>=64"]
build-backend = "setuptools.build_meta"

[project]
name = "gossipchain"
version = "0.1.0"
description = "A small proof-of-work blockchain node with an in-memory mempool and gossip-based peer discovery"
requires-python = ">=3.10"
dependencies = [
    "pyyaml",
]
keywords = ["blockchain", "proof-of-work", "gossip", "mempool", "merkle"]
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
    "Topic :: System :: Distributed Computing",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
gossipchain = "gossipchain.cli:main"

[tool.setuptools.packages.find]
include = ["gossipchain*"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
