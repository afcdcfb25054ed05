"""Infrastructure Layer: database session management and structured logging.

Invariants:
    - Infrastructure never imports domain rules from core/ (only core.errors)
    - All store failures leave this layer as DatabaseError
"""
