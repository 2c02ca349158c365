"""Data files bundled with the WatchNext service."""
