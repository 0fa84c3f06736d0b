"""FastAPI routers for the worker.

Routers are grouped by domain (notes, backend diagnostics).
"""
