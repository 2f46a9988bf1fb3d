import logging

from supabase import AsyncClient

from ..domain.errors import NotFoundError
from ..domain.interfaces import ArticleStore
from ..domain.model import Article
from ..schemas.documents import ArticleDocument
from .quiz_repository import execute, validate_row

logger = logging.getLogger(__name__)


class ArticleRepository(ArticleStore):
    """Read-only access to the articles the quizzes are generated from."""

    def __init__(self, client: AsyncClient, table: str = "articles") -> None:
        self.client = client
        self.table = table

    async def get_article(self, article_id: str) -> Article:
        res = await execute(
            self.client.table(self.table)
            .select("id,title,content,tags,cover_image_id")
            .eq("id", article_id)
            .limit(1),
            f"get article {article_id}",
        )
        if not res.data:
            raise NotFoundError(f"article {article_id} not found")
        doc = validate_row(ArticleDocument, res.data[0], "article")
        return Article(
            id=doc.id,
            title=doc.title,
            content=doc.content,
            tags=list(doc.tags or []),
            thumbnail_ref=doc.cover_image_id or "",
        )
