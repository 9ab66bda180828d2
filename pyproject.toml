[build-system]
requires = ["setuptools>=64"]
build-backend = "setuptools.build_meta"

[project]
name = "vpcsynth"
version = "0.1.0"
description = "Synthesis and optimization of VPC network ACLs and security groups from connectivity specifications"
requires-python = ">=3.10"
dependencies = []
keywords = ["vpc", "network-acl", "security-group", "firewall", "synthesis", "optimization"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: System Administrators",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Networking :: Firewalls",
    "Typing :: Typed",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.setuptools.packages.find]
include = ["vpcsynth*"]

[tool.pytest.ini_options]
addopts = "-ra"
