[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "scmavl"
version = "0.1.0"
description = "A persistent word-count AVL tree stored in a file-backed memory region, with an interactive shell"
requires-python = ">=3.10"
dependencies = []
keywords = ["avl", "tree", "persistent", "mmap", "storage", "word-count"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Intended Audience :: Education",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Database :: Database Engines/Servers",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
scmavl = "scmavl.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["scmavl"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
