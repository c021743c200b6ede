"""
Infrastructure layer package.

Contains concrete server handles implementing the drain port
defined in the domain layer.
"""
