"""
Application layer package.

Contains the services that act on a classified error: the response
resolver, the default responder, the shutdown coordinator and the
error handler that orchestrates them. Depends on domain ports only.
"""
