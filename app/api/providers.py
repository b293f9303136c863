"""Repository and service wiring for the routers.

Without DATABASE_URL every request shares the module-level in-memory
repositories below (tests reset them between cases).  With it, each
request gets PostgreSQL repositories bound to one session, committed
when the handler returns and rolled back if it raises.  Cache deletes
and queue messages collected in ``Repos.after_commit`` run only once
that commit has succeeded.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from dataclasses import dataclass
from typing import Annotated

from fastapi import Depends

from app.db.engine import AfterCommit, async_session_factory, session_scope
from app.repos.assignment_repo import AssignmentRepo, InMemoryAssignmentRepo
from app.repos.catalog_repo import CourseCatalog, InMemoryCourseCatalog
from app.repos.learner_repo import InMemoryLearnerRepo, LearnerRepo
from app.repos.pg_assignment_repo import PgAssignmentRepo
from app.repos.pg_catalog_repo import PgCourseCatalog
from app.repos.pg_learner_repo import PgLearnerRepo
from app.repos.pg_progress_repo import PgProgressStore
from app.repos.progress_repo import InMemoryProgressStore, ProgressStore
from app.services.completion_service import CompletionService
from app.services.quiz_scores import QuizScoreAggregator
from app.services.readiness_service import ReadinessService

catalog = InMemoryCourseCatalog()
progress_store = InMemoryProgressStore()
learner_repo = InMemoryLearnerRepo()
assignment_repo = InMemoryAssignmentRepo()


@dataclass(frozen=True, slots=True)
class Repos:
    catalog: CourseCatalog
    progress: ProgressStore
    learners: LearnerRepo
    assignments: AssignmentRepo
    after_commit: AfterCommit


async def get_repos() -> AsyncIterator[Repos]:
    after_commit = AfterCommit()
    if async_session_factory is None:
        yield Repos(
            catalog=catalog,
            progress=progress_store,
            learners=learner_repo,
            assignments=assignment_repo,
            after_commit=after_commit,
        )
    else:
        async with session_scope() as session:
            yield Repos(
                catalog=PgCourseCatalog(session),
                progress=PgProgressStore(session),
                learners=PgLearnerRepo(session),
                assignments=PgAssignmentRepo(session),
                after_commit=after_commit,
            )
    await after_commit.run()


RepoDep = Annotated[Repos, Depends(get_repos)]


def get_completion_service(repos: RepoDep) -> CompletionService:
    return CompletionService(
        repos.catalog, repos.progress, after_commit=repos.after_commit
    )


def get_readiness_service(repos: RepoDep) -> ReadinessService:
    return ReadinessService(
        repos.catalog, repos.progress, repos.assignments, repos.learners
    )


def get_quiz_aggregator(repos: RepoDep) -> QuizScoreAggregator:
    return QuizScoreAggregator(repos.learners)


CompletionDep = Annotated[CompletionService, Depends(get_completion_service)]
ReadinessDep = Annotated[ReadinessService, Depends(get_readiness_service)]
QuizDep = Annotated[QuizScoreAggregator, Depends(get_quiz_aggregator)]
