"""Mutating admission webhook that pulls container images through a controlled registry."""

__version__ = "0.1.0"
