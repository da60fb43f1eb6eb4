"""Cluster toolkit: workload definitions, node metrics, iptables rules, image pulling and configuration."""

__version__ = "1.0.0"