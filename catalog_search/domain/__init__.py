"""
Domain layer - Core catalog entities and value objects.

This layer contains the records the ranking pipeline borrows from the
storage collaborator and the derived values it produces, independent
of any storage or transport concerns.
"""
