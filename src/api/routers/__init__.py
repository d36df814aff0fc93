"""
API route handlers for different endpoint groups.

Each router handles one area of functionality (health, classification).
"""
