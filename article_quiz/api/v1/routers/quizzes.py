from fastapi import APIRouter, status
from ....schemas.quiz_schemas import QuizOut
from ...deps import ServiceDep

router = APIRouter(tags=["quizzes"])


@router.get("/quizzes/{quiz_id}", response_model=QuizOut)
async def get_quiz(quiz_id: str, svc: ServiceDep):
    return await svc.get_quiz(quiz_id)


@router.get("/articles/{article_id}/quizzes", response_model=list[QuizOut])
async def list_article_quizzes(article_id: str, svc: ServiceDep):
    return await svc.list_for_article(article_id)


@router.post("/articles/{article_id}/quizzes", response_model=QuizOut, status_code=status.HTTP_201_CREATED)
async def generate_article_quiz(article_id: str, svc: ServiceDep):
    # Always generates; sessions reuse the oldest quiz of the article
    return await svc.generate_for_article(article_id)
