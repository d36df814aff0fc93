"""
FastAPI dependencies for request processing.

Dependencies provide the per-request pipeline objects and the shared
model manager, and can be overridden in tests via app.dependency_overrides.
"""
