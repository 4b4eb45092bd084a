"""Core storage logic for dashstate."""
