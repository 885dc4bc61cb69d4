"""Service layer for reply generation."""
