"""Startup and shutdown steps of the indexer process."""
