"""Record building and the sync loop."""
