"""
FastAPI application layer for the plant and fungus classifier.

Exposes the image classification endpoint, which runs the two-stage
vision-inference pipeline, plus health and readiness checks.
"""
