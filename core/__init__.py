"""
Core value objects for Issue Radar.

See core/models.py for the issue, claim, fork, pull request and assessment
types shared by collectors, scorers and the pipeline.
"""
