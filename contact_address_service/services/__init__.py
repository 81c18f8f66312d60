"""Service layer: validation, ownership checks and address operations."""
