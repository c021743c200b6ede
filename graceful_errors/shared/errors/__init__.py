"""
Shared error handling package.

Centralizes registration of the graceful error handler so that every
uncaught error reaches the same policy.
"""
