"""Process entry point and HTTP API for the chunk indexer."""
