"""Representation of required connectivity, network ACLs and security groups."""