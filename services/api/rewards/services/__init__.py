"""Business logic services.

Services contain the allocation, claim and redemption rules and are called by
routes. Time and randomness are accepted as arguments so behavior is
reproducible in tests.
"""
