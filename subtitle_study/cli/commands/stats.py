"""CLI command for showing the study history of a word."""

import asyncio
from pathlib import Path

from subtitle_study.config.manager import ConfigManager
from subtitle_study.exceptions import StudyModeException
from subtitle_study.presenters import ConsolePresenter
from subtitle_study.services import SQLiteRecognitionRepository, SQLiteStudyRepository


def stats_command(args) -> int:
    """Execute the stats subcommand.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 = success, 1 = failure)
    """
    presenter = ConsolePresenter()
    config_manager = ConfigManager(Path(args.config)) if args.config else ConfigManager()
    overrides = {"study_db_path": args.db} if args.db else {}
    config = config_manager.load_config(**overrides)

    if not config.study_db_path.exists():
        presenter.show_error(f"No study database at {config.study_db_path}")
        return 1

    study_repository = SQLiteStudyRepository(config.study_db_path)
    recognition_repository = SQLiteRecognitionRepository(config.study_db_path)

    async def load():
        return await asyncio.gather(
            study_repository.get_stats(args.lemma),
            recognition_repository.get_stats(args.lemma),
        )

    try:
        study_stats, recognition_stats = asyncio.run(load())
    except StudyModeException as e:
        presenter.show_error(f"Error: {e}")
        return 1

    if study_stats.total_attempts == 0 and recognition_stats.attempts == 0:
        presenter.show_info(f"No study history for {args.lemma}")
        return 0

    presenter.show_word_stats(study_stats, recognition_stats)

    if args.recent:
        presenter.show_info("\nRecent answers:")
        for record in study_repository.get_recent_records(args.recent):
            presenter.show_info(f"  {record.timestamp:%Y-%m-%d %H:%M}  {record.result:9s} {record.surface_form}")
    return 0
