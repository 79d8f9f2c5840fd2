"""Feature extractors and pipeline handlers."""
