"""Infrastructure layer: backing file I/O and the vault itself.

Builds on the domain layer; must never import from config.
"""
