"""Business logic services.

Services hold cache-aside, invalidation, session fallback and like sync
logic. They receive their gate and repository explicitly; routes and
scripts wire them up.
"""
