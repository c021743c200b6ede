"""
Domain layer package.

Contains the pure error-handling policy: status classification,
the maintenance policy, entities, port interfaces and errors.
No framework imports, no IO beyond reading configuration.
"""
