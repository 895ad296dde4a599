"""
FastAPI routers grouped by resource (users, tasks).

Each module exposes an APIRouter that app.py includes. Routers only resolve
the caller, parse bodies and hand off to the services kept in app.state.
"""
