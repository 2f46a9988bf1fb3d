from typing import Optional

from fastapi import APIRouter, HTTPException, status
from fastapi.responses import JSONResponse

from ....domain.errors import QuizLoadError
from ....domain.interfaces import ArticleStore, QuizGenerationService, QuizStore
from ....schemas.quiz_schemas import AnswerIn, SessionCreateIn, SessionOut
from ....services.quiz_service import session_to_dict
from ....services.quiz_session import QuizSession
from ....services.session_store import SessionStore
from ...deps import ArticlesDep, GeneratorDep, RepositoryDep, SessionStoreDep
from ..errors import load_error_status

router = APIRouter(prefix="/sessions", tags=["sessions"])

# Routes that change a session hold store.lock(session_id) from restore to
# save. Only create and load need the generator.


async def _restore(
    session_id: str,
    store: SessionStore,
    repo: QuizStore,
    articles: ArticleStore,
    generator: Optional[QuizGenerationService] = None,
) -> QuizSession:
    snapshot = await store.load(session_id)
    if snapshot is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Session not found")
    quiz = await repo.get_quiz(snapshot.quiz_id) if snapshot.quiz_id else None
    return QuizSession.restore(snapshot, quiz, repo, generator, articles)


async def _load(session: QuizSession, article_id: str, store: SessionStore, created: bool):
    try:
        await session.load(article_id)
    except QuizLoadError as exc:
        # the session stays in loading and can be retried via /load
        await store.save(session.to_snapshot())
        return JSONResponse(status_code=load_error_status(exc), content=session_to_dict(session))
    await store.save(session.to_snapshot())
    code = status.HTTP_201_CREATED if created else status.HTTP_200_OK
    return JSONResponse(status_code=code, content=session_to_dict(session))


@router.post("", response_model=SessionOut, status_code=status.HTTP_201_CREATED)
async def create_session(
    payload: SessionCreateIn,
    store: SessionStoreDep,
    repo: RepositoryDep,
    generator: GeneratorDep,
    articles: ArticlesDep,
):
    session = QuizSession(payload.userId, repo, generator, articles)
    async with store.lock(session.id):
        return await _load(session, payload.articleId, store, created=True)


@router.post("/{session_id}/load", response_model=SessionOut)
async def retry_load(
    session_id: str,
    store: SessionStoreDep,
    repo: RepositoryDep,
    generator: GeneratorDep,
    articles: ArticlesDep,
):
    async with store.lock(session_id):
        session = await _restore(session_id, store, repo, articles, generator)
        return await _load(session, session.article_id, store, created=False)


@router.get("/{session_id}", response_model=SessionOut)
async def get_session(
    session_id: str,
    store: SessionStoreDep,
    repo: RepositoryDep,
    articles: ArticlesDep,
):
    session = await _restore(session_id, store, repo, articles)
    return session_to_dict(session)


@router.post("/{session_id}/answer", response_model=SessionOut)
async def select_answer(
    session_id: str,
    payload: AnswerIn,
    store: SessionStoreDep,
    repo: RepositoryDep,
    articles: ArticlesDep,
):
    async with store.lock(session_id):
        session = await _restore(session_id, store, repo, articles)
        await session.select_answer(payload.label)
        await store.save(session.to_snapshot())
    return session_to_dict(session)


@router.post("/{session_id}/advance", response_model=SessionOut)
async def advance(
    session_id: str,
    store: SessionStoreDep,
    repo: RepositoryDep,
    articles: ArticlesDep,
):
    async with store.lock(session_id):
        session = await _restore(session_id, store, repo, articles)
        await session.advance()
        attempt_saved = None
        if session.is_completed:
            # the score is returned even when the attempt could not be stored
            attempt_saved = await session.wait_for_persistence() is not None
        await store.save(session.to_snapshot())
    return session_to_dict(session, attempt_saved=attempt_saved)


@router.post("/{session_id}/reset", response_model=SessionOut)
async def reset(
    session_id: str,
    store: SessionStoreDep,
    repo: RepositoryDep,
    articles: ArticlesDep,
):
    async with store.lock(session_id):
        session = await _restore(session_id, store, repo, articles)
        await session.reset()
        await store.save(session.to_snapshot())
    return session_to_dict(session)
