"""
RecordHub - Pluggable data-access layer.

A single retrieval contract shared by consumer services, with relational and
key-value backends that can be swapped (sync or async) at the composition root.
"""

__version__ = "0.1.0"
