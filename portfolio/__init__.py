"""
Portfolio site backend.

Public sections (projects, articles, live comments) and an owner-only
management surface over a row-policy enforcing store.
"""

__version__ = "1.0.0"
