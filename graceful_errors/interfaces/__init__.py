"""
Interfaces layer package.

Contains the Starlette transport adapter, content negotiation,
the maintenance middleware and the health router.
No policy decisions belong here.
"""
