"""Concrete adapters behind the interfaces in :mod:`docchat.interfaces`."""
