"""
FastAPI routers grouped by resource (requests, tasks, stats, backups, pages).

Each file inside this package exposes an APIRouter that is included by the
application factory (app.py). Handlers fetch the RequestService from
``app.state`` and never touch the JSON document themselves.
"""
