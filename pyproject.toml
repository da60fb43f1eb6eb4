[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "rik"
version = "1.0.0"
description = "Cluster orchestration toolkit: workload definitions, node metrics, iptables rules, image pulling and client configuration."
requires-python = ">=3.11"
keywords = ["cluster", "orchestration", "containers", "oci", "iptables", "workloads"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: System Administrators",
    "Intended Audience :: Developers",
    "Operating System :: POSIX :: Linux",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Clustering",
]
dependencies = [
    "psutil",
    "tomli-w",
]

[project.optional-dependencies]
test = [
    "pytest",
    "responses",
]

[tool.hatch.build.targets.wheel]
packages = ["rik"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py311"
