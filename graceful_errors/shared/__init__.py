"""
Shared module package.

Contains cross-cutting concerns:
- Logging configuration
- Error handler registration on the ASGI application
"""
