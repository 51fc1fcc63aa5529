"""Configuration, database session, security primitives and domain errors."""
