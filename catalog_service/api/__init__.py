"""
HTTP API
FastAPI host for the product query endpoints and startup probes.
"""
