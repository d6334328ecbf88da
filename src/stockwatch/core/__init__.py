"""Core ingestion and matching pipeline."""
