"""Core module - data models, configuration and observability.

The reconciliation logic itself lives in /reconciliation/ and depends only on
the canonical models defined here.
"""

__version__ = "1.0.0"
