"""Noise model of a superconducting-qubit control line."""

__version__ = "0.1.0"
