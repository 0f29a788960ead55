from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Dict, List, Optional

from fastapi import FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field, field_validator

# Add parent directory to path for posts module import
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))
from posts import settings
from posts.builder import CatalogError, PostCatalogBuilder

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 100


class SearchPayload(BaseModel):
    text: Optional[str] = Field(
        None, max_length=200, description="Substring of title, excerpt or tags."
    )
    tag: Optional[str] = Field(None, max_length=100)
    category: Optional[str] = Field(None, max_length=100)
    year: Optional[int] = Field(None, ge=1970, le=9999)

    @field_validator("text", "tag", "category")
    @classmethod
    def clean_term(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        # Collapse whitespace; blank terms mean "no filter"
        cleaned = " ".join(value.split())
        return cleaned or None


class PostSummary(BaseModel):
    slug: str
    title: str
    date: Optional[str] = None
    updated: Optional[str] = None
    categories: List[str] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)
    excerpt: str = ""
    code_languages: List[str] = Field(default_factory=list)
    word_count: int = 0


class PostDetail(PostSummary):
    body: str
    toc: List[Dict[str, object]] = Field(default_factory=list)


class PostList(BaseModel):
    total: int
    posts: List[PostSummary]


app = FastAPI(title="PostBook API", version="1.0.0")

# For production, set CORS_ORIGINS="https://blog.example.com"
if settings.CORS_ORIGINS == "*":
    allowed_origins = ["*"]
    logger.warning("CORS is set to allow all origins. This is not recommended for production!")
else:
    allowed_origins = [origin.strip() for origin in settings.CORS_ORIGINS.split(",") if origin.strip()]
    logger.info(f"CORS allowed origins: {allowed_origins}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)

catalog_builder = PostCatalogBuilder(settings.CATALOG_DIR)

if catalog_builder.is_built():
    logger.info(f"✓ Catalog loaded from {settings.CATALOG_DIR}")
else:
    logger.warning(f"⚠ Catalog not found at {settings.CATALOG_DIR}")
    logger.warning("  Run 'python Ingress/build_catalog.py' to build it")


def catalog_unavailable(exc: CatalogError) -> HTTPException:
    logger.error(f"Catalog unavailable: {exc}")
    return HTTPException(status_code=503, detail=str(exc))


@app.get("/health")
def health_check() -> Dict[str, str]:
    return {"status": "ok"}


@app.get("/api/posts", response_model=PostList)
def list_posts(
    tag: Optional[str] = None,
    category: Optional[str] = None,
    year: Optional[int] = None,
    limit: int = Query(20, ge=1, le=MAX_PAGE_SIZE),
    offset: int = Query(0, ge=0),
) -> PostList:
    """List posts newest first, optionally filtered."""
    try:
        results = catalog_builder.search_articles(tag=tag, category=category, year=year)
    except CatalogError as exc:
        raise catalog_unavailable(exc) from exc

    page = results[offset:offset + limit]
    return PostList(total=len(results), posts=[PostSummary(**item) for item in page])


@app.get("/api/posts/{slug}", response_model=PostDetail)
def get_post(slug: str) -> PostDetail:
    """Get a single post with its body and table of contents."""
    try:
        article = catalog_builder.get_article(slug)
    except KeyError as exc:
        raise HTTPException(status_code=404, detail=f"Post '{slug}' not found.") from exc
    except CatalogError as exc:
        raise catalog_unavailable(exc) from exc

    return PostDetail(**article)


@app.post("/api/search", response_model=PostList)
def search_posts(payload: SearchPayload) -> PostList:
    try:
        results = catalog_builder.search_articles(
            tag=payload.tag,
            category=payload.category,
            year=payload.year,
            text=payload.text,
        )
    except CatalogError as exc:
        raise catalog_unavailable(exc) from exc

    logger.info(f"Search {payload.model_dump(exclude_none=True)}: {len(results)} posts")
    return PostList(total=len(results), posts=[PostSummary(**item) for item in results])


@app.get("/api/tags")
def list_tags() -> Dict[str, int]:
    try:
        return catalog_builder.list_tags()
    except CatalogError as exc:
        raise catalog_unavailable(exc) from exc


@app.get("/api/categories")
def list_categories() -> Dict[str, int]:
    try:
        return catalog_builder.list_categories()
    except CatalogError as exc:
        raise catalog_unavailable(exc) from exc


@app.get("/api/archives")
def list_archives() -> Dict[str, Dict[str, List[str]]]:
    try:
        return catalog_builder.get_archives()
    except CatalogError as exc:
        raise catalog_unavailable(exc) from exc


def run_server(host: str = "0.0.0.0", port: int = settings.DEFAULT_PORT, reload: bool = False) -> None:
    import uvicorn

    uvicorn.run(
        "app:app",
        host=host,
        port=port,
        reload=reload,
        log_level="info",
    )


if __name__ == "__main__":
    run_server(port=settings.DEFAULT_PORT, reload=False)
