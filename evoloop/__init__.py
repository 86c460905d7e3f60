"""Inspect a Git project, analyse its quality checks, propose patches, evaluate them and record the results."""

__version__ = "0.1.0"