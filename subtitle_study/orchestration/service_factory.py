"""Factory for creating the services a study session depends on."""

import logging
import sqlite3
from dataclasses import dataclass
from typing import Callable, Sequence

from subtitle_study.config import StudyModeConfig
from subtitle_study.exceptions import RepositoryError
from subtitle_study.models import StudyDeckConfig
from subtitle_study.services import (
    AnkiService,
    CombinedKnowledgeGetter,
    SQLiteRecognitionRepository,
    SQLiteStudyRepository,
    create_knowledge_getter,
)

logger = logging.getLogger(__name__)


@dataclass
class StudyServices:
    """Optional collaborators of the study mode engine; None when unavailable."""

    study_repository: SQLiteStudyRepository | None = None
    recognition_repository: SQLiteRecognitionRepository | None = None
    anki_service: AnkiService | None = None
    knowledge_getter: CombinedKnowledgeGetter | None = None


def create_services(
    config: StudyModeConfig,
    decks: Callable[[], Sequence[StudyDeckConfig]] | None = None,
) -> StudyServices:
    """Create repositories and knowledge sources for a configuration.

    Storage failures are logged and leave the affected service unset, so a
    session can still run with reduced functionality.

    Args:
        config: Study mode configuration
        decks: Callable returning the live deck list for Anki lookups, e.g.
            the decks of an engine whose settings may change; defaults to
            the decks of ``config``

    Returns:
        The created services
    """
    services = StudyServices()

    try:
        study_repository = SQLiteStudyRepository(config.study_db_path)
        study_repository.initialize()
        recognition_repository = SQLiteRecognitionRepository(config.study_db_path)
        recognition_repository.initialize()
        services.study_repository = study_repository
        services.recognition_repository = recognition_repository
    except (RepositoryError, sqlite3.Error, OSError) as e:
        logger.warning(f"Could not initialize study database: {e}")

    if config.uses_knowledge:
        anki_service = AnkiService(config.ankiconnect_url)
        if not config.enabled_decks:
            logger.warning("Knowledge-driven selection is enabled but no study decks are configured")
        elif not anki_service.is_available():
            logger.warning(f"AnkiConnect not reachable at {config.ankiconnect_url}")

        services.anki_service = anki_service
        services.knowledge_getter = create_knowledge_getter(
            anki_service,
            decks or (lambda: config.study_decks),
            services.study_repository,
        )

    return services
