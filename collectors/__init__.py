"""
Signal collectors for Issue Radar.

Each collector:
- Reads one kind of evidence about an issue (PRs, momentum, forks, workload)
- Goes through the shared cached GitHub API
- Degrades to a neutral default instead of raising

Claim detection (claims.py) works on comment records and needs no API.
"""

__version__ = "0.1.0"
