"""
Workflows for Issue Radar

- pipeline.py: evaluates one issue (collectors -> scorers -> report)
- session.py: per-page navigation state; drops superseded evaluations

Usage:
    from workflows.pipeline import IssueRadarPipeline, RadarConfig
    from workflows.session import RadarSession

    async with IssueRadarPipeline(RadarConfig.from_env()) as pipeline:
        session = RadarSession(pipeline)
        report = await session.navigate(IssueRef.parse("octo/repo#42"))
"""
