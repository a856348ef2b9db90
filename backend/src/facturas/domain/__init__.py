"""
Domain package - Core value objects with no framework dependencies.

Holds the typed results of invoice page extraction.
"""
