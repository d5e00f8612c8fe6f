"""
Database schema, fixtures, and seeding for the demo dashboard.

The seed service (`services/seed`) exposes the seeder over HTTP; `python -m db.seed` runs it from a shell.
"""
