"""Database seeder: users, categories, posts and comments for local development."""
import asyncio
import argparse
import random
import time
from datetime import datetime, timezone, timedelta

from blogpress.database import engine, async_session, Base
from blogpress.models import ROLE_ADMIN, Category, Comment, Post, PostTag, User
from blogpress.security import create_access_token
from blogpress.services.slugs import slugify

TAGS = ["python", "fastapi", "postgresql", "redis", "docker", "kubernetes",
        "react", "typescript", "aws", "devops", "testing", "performance",
        "security", "microservices", "graphql", "rest-api"]

CATEGORIES = [
    ("Technology", "Software, hardware and the web", "#3B82F6"),
    ("Travel", "Places worth the trip", "#10B981"),
    ("Food", "Recipes and restaurants", "#F59E0B"),
    ("Lifestyle", "Everything else", "#EC4899"),
]


async def seed(small: bool = False):
    num_authors = 5 if small else 25
    num_posts = 50 if small else 2000
    max_comments_per_post = 2 if small else 5

    print(f"Seeding: {num_authors} authors, {num_posts} posts, up to {max_comments_per_post} comments each")
    start = time.perf_counter()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    async with async_session() as session:
        admin = User(name="Admin", email="admin@example.com", role=ROLE_ADMIN,
                     bio="Keeps the categories tidy.")
        session.add(admin)

        users = []
        for i in range(num_authors):
            user = User(
                name=f"Author {i}",
                email=f"author_{i:04d}@example.com",
                bio=f"I am test author number {i}. I write about technology.",
            )
            session.add(user)
            users.append(user)

        categories = []
        for name, description, color in CATEGORIES:
            category = Category(name=name, slug=slugify(name), description=description, color=color)
            session.add(category)
            categories.append(category)
        await session.flush()
        print(f"  Created {len(users) + 1} users and {len(categories)} categories")

        total_comments = 0
        for i in range(num_posts):
            created = datetime.now(timezone.utc) - timedelta(days=random.randint(0, 365))
            topic = random.choice(TAGS)
            title = f"Post {i}: Getting started with {topic}"
            post = Post(
                title=title,
                slug=f"{slugify(title)}-{i}",
                content=f"This is the full content of post {i} about {topic}. " * 20,
                excerpt=f"A short guide to {topic}.",
                view_count=random.randint(0, 5000),
                is_published=random.random() > 0.1,  # 90% published
                created_at=created,
                author_id=random.choice(users).id,
                category_id=random.choice(categories).id,
            )
            post.tags = [
                PostTag(name=name, position=pos)
                for pos, name in enumerate(random.sample(TAGS, k=random.randint(1, 4)))
            ]
            post.comments = [
                Comment(
                    content=f"Great post! Comment {n} on post {i}.",
                    user_id=random.choice(users).id,
                    created_at=created + timedelta(hours=n + 1),
                )
                for n in range(random.randint(0, max_comments_per_post))
            ]
            total_comments += len(post.comments)
            session.add(post)

            if (i + 1) % 500 == 0:
                await session.flush()
                print(f"  {i + 1} posts created")

        await session.commit()

    elapsed = time.perf_counter() - start
    print(f"\nSeeding complete in {elapsed:.1f}s")
    print(f"  Posts: {num_posts}")
    print(f"  Comments: {total_comments}")
    print("\nBearer tokens:")
    print(f"  admin    (id={admin.id}): {create_access_token(admin.id)}")
    print(f"  author 0 (id={users[0].id}): {create_access_token(users[0].id)}")


def main():
    parser = argparse.ArgumentParser(description="Seed the blog database")
    parser.add_argument("--small", action="store_true", help="Use small dataset (50 posts)")
    args = parser.parse_args()
    asyncio.run(seed(small=args.small))


if __name__ == "__main__":
    main()
