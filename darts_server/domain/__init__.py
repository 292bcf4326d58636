"""Domain layer (pure logic).

- Keep throw resolution rules and calculations here.
- Avoid I/O: no Redis, no HTTP/FastAPI.
- Prefer deterministic functions (seed and time passed in as arguments).
"""
