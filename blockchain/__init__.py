"""Access to chain nodes and decoding of raw block data."""
