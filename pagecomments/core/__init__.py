"""Shared infrastructure: logging, request context, Redis, middleware."""
