[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "capo_net"
version = "0.1.0"
description = "Reconciles OpenStack networking resources (networks, subnets, routers, ports, trunks, floating IPs, security groups) for Kubernetes clusters"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "openstack",
    "neutron",
    "networking",
    "kubernetes",
    "cluster-api",
    "reconcile",
    "security-groups",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
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
packages = ["capo_net"]

[tool.hatch.build.targets.sdist]
include = ["capo_net", "tests", "README.md"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
