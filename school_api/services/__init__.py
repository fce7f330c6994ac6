"""
High-level use cases for the school content API.

Each service orchestrates the record store and the upload handler for one
resource. Routers call these services instead of touching the JSON documents
or upload directories directly.
"""
