"""
Views for django-inkpress.

``public`` renders the blog, ``console`` serves the admin JSON API,
``auth`` and ``passkeys`` handle sign-in, ``api`` covers export/import.
"""
