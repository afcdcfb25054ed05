"""Core Layer: pure game rules, no IO, no async, no DB.

Invariants:
    - No module in core/ imports from services/, api/, infrastructure/, models/ or db/
    - Rule violations surface as typed errors from core/errors.py

Design Decisions:
    - Functional core separated from the transactional shell in services/
"""
