"""CLI package for gcrootctl."""
