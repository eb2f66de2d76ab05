"""Database seeder for local development.

Seeded authors and articles carry no media (image id and URL both
NULL), so seeding never touches the media store.

    python -m scripts.seed --schema-only   # create missing tables, keep data
    python -m scripts.seed --small         # create missing tables, add sample rows
    python -m scripts.seed --reset         # drop everything first
"""
import asyncio
import argparse
import random
import time

from sqlalchemy.ext.asyncio import AsyncConnection, AsyncSession

from cms_api.database import engine, async_session, Base
from cms_api.models import Article, Author, Tag, join_tags

TAGS = ["python", "fastapi", "postgresql", "docker", "kubernetes",
        "react", "typescript", "aws", "devops", "testing", "performance",
        "security", "microservices", "graphql", "rest-api"]

TITLES = ["Mr", "Ms", "Mx", "Dr"]
FIRST_NAMES = ["Ada", "Grace", "Alan", "Edsger", "Barbara", "Donald", "Margaret", "Ken"]
LAST_NAMES = ["Lovelace", "Hopper", "Turing", "Dijkstra", "Liskov", "Knuth", "Hamilton", "Thompson"]


async def populate(session: AsyncSession, num_authors: int, num_articles: int) -> dict:
    """Insert tags, authors and articles into *session* and commit."""
    for name in TAGS:
        session.add(Tag(title=name))

    authors = []
    for i in range(num_authors):
        author = Author(
            title=random.choice(TITLES),
            first_name=random.choice(FIRST_NAMES),
            last_name=f"{random.choice(LAST_NAMES)} {i}",
        )
        session.add(author)
        authors.append(author)
    await session.flush()

    for i in range(num_articles):
        topic = random.choice(TAGS)
        session.add(Article(
            title=f"Article {i}: Notes on {topic}",
            description=f"A short guide to {topic}.",
            content=f"This is the full content of article {i}. " * 20,
            tags=join_tags(random.sample(TAGS, k=random.randint(0, 3))),
            author_id=random.choice(authors).id,
        ))
    await session.commit()

    return {"tags": len(TAGS), "authors": num_authors, "articles": num_articles}


async def create_schema(conn: AsyncConnection, reset: bool = False) -> None:
    """Create any missing tables.  Existing data is only dropped with *reset*."""
    if reset:
        await conn.run_sync(Base.metadata.drop_all)
    await conn.run_sync(Base.metadata.create_all)


async def seed(small: bool = False, reset: bool = False, schema_only: bool = False):
    async with engine.begin() as conn:
        await create_schema(conn, reset=reset)
    if schema_only:
        print("Schema is up to date")
        return

    num_authors = 5 if small else 50
    num_articles = 50 if small else 5000

    print(f"Seeding: {num_authors} authors, {num_articles} articles")
    start = time.perf_counter()

    async with async_session() as session:
        counts = await populate(session, num_authors, num_articles)

    elapsed = time.perf_counter() - start
    print(f"\nSeeding complete in {elapsed:.1f}s")
    for name, count in counts.items():
        print(f"  {name.capitalize()}: {count}")


def main():
    parser = argparse.ArgumentParser(description="Seed the content database")
    parser.add_argument("--small", action="store_true", help="Use small dataset (50 articles)")
    parser.add_argument("--reset", action="store_true", help="Drop existing tables before seeding")
    parser.add_argument("--schema-only", action="store_true", help="Create missing tables and stop")
    args = parser.parse_args()
    asyncio.run(seed(small=args.small, reset=args.reset, schema_only=args.schema_only))


if __name__ == "__main__":
    main()
