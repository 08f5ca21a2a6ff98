"""
GitHub connectivity: transport (HTTP, retries, typed errors) and the cached
endpoint facade used by every collector.
"""
