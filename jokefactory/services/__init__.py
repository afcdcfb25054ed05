"""Services Layer: handler classes that orchestrate pure core rules around store IO.

Invariants:
    - Handlers never call db.commit(): the route layer owns the transaction boundary
    - Every rule check is delegated to core/ (pure); handlers only load, lock and write

Design Decisions:
    - One handler class per component (round, assignment, batch, qc, market,
      stats, session) for locality
"""
