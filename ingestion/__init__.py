"""
Ingestion pipeline for Stack Overflow and GitHub content.

Modules:
    base: Base class for source clients (GET, decoding, call metrics)
    runner: Experiment orchestrator (run_pass / run_experiment)
    scheduler: APScheduler integration repeating the experiment
    main: Process entry point

Subpackages:
    extractors: Stack Overflow and GitHub clients
    loaders: Schema provisioner and per-entity writer

Architecture:
    For every tracked entity and lookback window:

    1. Fetch - Stack Overflow threads, then GitHub issues and comments
    2. Provision - Create the entity's tables if they are missing
    3. Write - Insert-if-absent for questions/answers, append for issues

    Steps run strictly one after another. The first failure ends the
    pass and, through the scheduler, the process.

Usage:
    from ingestion.extractors.stackoverflow_extractor import StackOverflowExtractor
    from ingestion.extractors.github_extractor import GitHubExtractor
    from ingestion.loaders.postgres_loader import PostgresLoader
    from ingestion.runner import ExperimentRunner

Example:
    runner = ExperimentRunner(
        qa_loader=PostgresLoader(qa_session),
        repo_loader=PostgresLoader(repo_session),
        stackoverflow=StackOverflowExtractor(),
        github=GitHubExtractor(),
        roster=build_roster(settings.TRACKED_ENTITIES),
        credential=settings.require_github_token(),
        lookback_windows=settings.lookback_windows(),
    )
    summary = await runner.run_pass(timedelta(days=7))
"""
