"""Domain layer: value typing and permission rules.

This layer depends only on stdlib and :mod:`cfgvault.errors`.
It must never touch the filesystem or import from infrastructure or config.
"""
