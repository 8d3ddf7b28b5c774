"""Relational schema definitions and seed data loading."""

from .tables import create_schema, metadata, posts, users

__all__ = ["create_schema", "metadata", "posts", "users"]
