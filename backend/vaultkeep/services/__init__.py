"""Services — imperative shell around the pure core.

Invariants:
    - Services load state through repositories, ask core/ for a decision, then persist
    - Side effects (email) run only after the state transition is committed

Design Decisions:
    - Services receive repositories and collaborators via constructor (ADR: impureim sandwich)
"""
