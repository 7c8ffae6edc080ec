"""HTTP gateway for the Angel One SmartAPI."""

__version__ = "1.0.0"
