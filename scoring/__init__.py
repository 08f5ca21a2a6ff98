"""
Pure scoring for Issue Radar.

- difficulty.py: rule-based difficulty score with an explainable signal trail
- status.py: clear / claimed / active-pr cascade
- stats.py: chart projections (health radar axes, 30-day activity)
"""
