"""visitdesk - auth-gated visit counter with a small admin console.

Core concepts:
- Users live in a relational `users` table (username, password hash, created_at).
- API clients log in once and then send a signed bearer token (JWT).
- The admin console uses HTTP Basic against the same users table.
- `GET /` records a visit and returns the running total.
"""

__all__ = ["__version__"]

__version__ = "0.1.0"
