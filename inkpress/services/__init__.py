"""
Operations behind the public pages and the admin console.

Mutating operations take the acting user first and raise
``PermissionDenied`` unless that user is an admin. Validation problems
come back as failed ``ActionResult`` objects.
"""
