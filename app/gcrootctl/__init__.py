"""gcrootctl - Retention of stale garbage-collection roots.

Retires stale symlinks that pin paths in a content-addressed package
store and refreshes the ones that are still in use.
"""

__version__ = "0.3.0"
