"""
Kernel - the persistent store: models, identity, row policies, change feed.
"""
