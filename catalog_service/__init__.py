"""
Catalog Startup Service
Startup health checks, background catalog sync, and read-only product queries.
"""

__version__ = "0.1.0"
