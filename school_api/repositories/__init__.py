"""
Persistence adapters.

Each resource keeps its records in one JSON document plus one directory of
uploaded images. Services depend on the store rather than touching the files.
"""
