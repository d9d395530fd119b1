"""Command-line application for the feed prefetcher."""
