"""
Pydantic models for API request/response schemas.

These models define the JSON bodies the classification endpoint returns.
They are separate from the internal pipeline types to keep the HTTP contract stable.
"""
