"""
FastAPI Todo Backend package.

Per-user todo management: ownership-checked CRUD, atomic bulk creation,
partial-success bulk delete/toggle and version-checked updates. Build the
ASGI app with todo_api.main.create_app (any ASGI server with factory support).
"""
