"""
                        Services Module

Collaborators of the cart and checkout flow, each with the hybrid
architecture pattern: a Mock (development) and a Real (staging/production)
implementation behind an abstract base, selected by a cached factory.

Services:
    - storage: Cart snapshot persistence (memory, file, Redis)
    - delivery: Per-vendor delivery charge resolution
    - ordering: Per-vendor order submission
"""
