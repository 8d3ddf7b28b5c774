"""I/O layer: backend adapters and relational schema management."""
