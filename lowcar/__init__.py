"""Simulated lowcar robot devices, their board and their COBS-framed serial protocol."""

__version__ = "0.1.0"