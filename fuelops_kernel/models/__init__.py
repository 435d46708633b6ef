"""ORM models for the client-state store."""

from fuelops_kernel.models.client_state import ClientStateItem

__all__ = ["ClientStateItem"]
