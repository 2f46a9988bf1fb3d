from typing import Annotated, Optional

from fastapi import APIRouter, Query

from ....schemas.quiz_schemas import AttemptOut, StatisticsOut
from ....services.quiz_service import attempt_to_dict, statistics_to_dict
from ...deps import AggregatorDep, RepositoryDep

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/{user_id}/attempts", response_model=list[AttemptOut])
async def list_attempts(
    user_id: str,
    repo: RepositoryDep,
    limit: Annotated[Optional[int], Query(ge=1, le=200)] = None,
):
    return [attempt_to_dict(a) for a in await repo.get_attempts_by_user(user_id, limit)]


@router.get("/{user_id}/statistics", response_model=StatisticsOut)
async def compute_statistics(user_id: str, aggregator: AggregatorDep):
    return statistics_to_dict(await aggregator.compute_statistics(user_id))


@router.get("/{user_id}/statistics/cached", response_model=StatisticsOut)
async def cached_statistics(user_id: str, repo: RepositoryDep):
    return statistics_to_dict(await repo.get_statistics(user_id))
