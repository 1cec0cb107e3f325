"""Docboard: onboarding knowledge base with versioned markdown documents."""

__version__ = "1.0.0"
