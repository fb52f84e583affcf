"""
django-inkpress - A self-hosted blogging platform for Django.

Features:
- Posts, standalone pages and short title-less memos
- Flat tags with Unicode-aware slugs
- Threaded comments with AI spam scoring and an email whitelist
- Read-through cache (Redis or in-process) with tag-based invalidation
- Encrypted storage for integration secrets
- S3-compatible media storage
- RSS feed, sitemap and JSON export/import
- Admin console API and Umami analytics
"""

__version__ = "0.1.0"
