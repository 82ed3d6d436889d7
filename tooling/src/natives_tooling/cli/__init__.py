"""`natives` command-line interface."""
