"""Packaged data: default configuration and its JSON Schema."""
