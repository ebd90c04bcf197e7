"""Inkpress: multi-user blogging backend and optimistic client cache."""

__version__ = "1.0.0"
