"""Database fixtures and test data factories."""
