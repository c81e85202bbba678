"""askdb command-line interface."""
