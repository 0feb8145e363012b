"""Background jobs: scheduler, indexer task and health endpoints."""
