"""External tool contracts."""
