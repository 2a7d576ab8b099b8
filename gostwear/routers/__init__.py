"""
FastAPI routers grouped by domain (pages, products, auth, orders).

Each module exposes an APIRouter that the app factory includes. Services are
looked up on ``request.app.state`` so tests can build isolated apps.
"""
