"""Core configuration, paths, accounts and run context."""
