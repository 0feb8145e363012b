"""Services for chunk indexing, storage and reconstruction."""
