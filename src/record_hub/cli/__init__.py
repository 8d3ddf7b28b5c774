"""Command-line interface for RecordHub."""
