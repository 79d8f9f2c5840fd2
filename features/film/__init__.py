"""Film style and editing metrics."""
