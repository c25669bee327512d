"""Command-line interface for Photo Sorter."""
