"""loreguard command-line interface."""
