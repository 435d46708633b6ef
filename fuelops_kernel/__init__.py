"""
Fuel Operations Kernel

The UI-independent core of the station reconciliation dashboard:
- Daily sales entries with a fixed derivation chain
- Role-gated entry lifecycle (draft, submit, validate, approve, reject)
- Typed errors and structured logging
- Client-side state store (token, profile, cached lists)
"""

__version__ = "0.1.0"
