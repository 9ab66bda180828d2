"""Reduction of the number of firewall rules."""