"""Business logic services used by handlers.

Services are imported lazily by handlers so that a cold start does not
create boto3 resources for routes that never touch them.
"""

# Do NOT import services here - use lazy loading in handlers instead
