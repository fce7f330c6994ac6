"""
FastAPI routers grouped by resource (news, trips, students, radio).

Each module exposes an APIRouter declaring the resource's form fields; the
request handling itself lives in ``common``.
"""
