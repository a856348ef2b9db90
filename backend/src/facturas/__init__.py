"""
Facturas API - invoice records over HTTP.

CRUD over a single invoice table plus an endpoint that scrapes
structured invoice data from an external HTML page.
"""

__version__ = "1.0.0"
