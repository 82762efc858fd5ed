"""Export, caching and invalidation services."""
