"""Core data model, database and byte-level primitives."""
