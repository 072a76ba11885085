"""
EcoVibe Design site service.

This package provides a FastAPI application serving the public portfolio
gallery and the admin panel, with database and object storage abstractions
so the site can run against Postgres/S3 in production and in-memory
backends in tests.
"""
