"""Persistence adapters implementing tasklist.core.ports.PersistenceGateway."""
