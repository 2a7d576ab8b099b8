"""Pure domain rules (no I/O): record keys, collection names."""
