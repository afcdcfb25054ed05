"""Joke Factory: classroom joke-production game backend.

Invariants:
    - Package root contains no executable code (import side-effects prohibited)
"""
