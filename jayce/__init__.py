"""Jayce - Move package deployer for Aptos"""

__version__ = "0.1.0"
