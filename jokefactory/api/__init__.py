"""API Layer: FastAPI routes, dependencies and error handlers.

Invariants:
    - Routes registered explicitly in main.py (no auto-discovery)
    - Routes own the transaction boundary: call one handler, then commit

Design Decisions:
    - Thin routes delegate to services; schemas shape the JSON
"""
