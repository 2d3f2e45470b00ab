"""Adaptive readiness and training-load decision engine."""

__version__ = "0.1.0"
