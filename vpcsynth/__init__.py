"""Synthesis and optimization of VPC network ACLs and security groups."""

__version__ = "0.1.0"