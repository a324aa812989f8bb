import pytest
from beanie import init_beanie
from httpx import ASGITransport, AsyncClient
from mongomock_motor import AsyncMongoMockClient

from cinecritic.main import app
from cinecritic.models import Comment, CommentAuthor, DOCUMENT_MODELS, Reply, Review, User
from cinecritic.OAuth2 import create_access_token
from cinecritic.utils import hash


@pytest.fixture(autouse=True)
async def db():
    """Fresh in-memory MongoDB for every test."""
    client = AsyncMongoMockClient()
    database = client["cinecritic_test"]
    await init_beanie(database=database, document_models=DOCUMENT_MODELS)
    yield database


@pytest.fixture
async def client():
    # ASGITransport does not run the lifespan, so the mock database above stays in place.
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


async def make_user(username: str, name: str = None, password: str = "secret123") -> User:
    user = User(
        name=name or username.title(),
        email=f"{username}@example.com",
        username=username,
        password=hash(password),
    )
    await user.insert()
    return user


def auth_headers(user: User) -> dict:
    token = create_access_token(data={"id": str(user.id), "email": user.email})
    return {"Authorization": f"Bearer {token}"}


async def make_review(author: User, movie: str = "tt0111161", rating: float = 4, **extra) -> Review:
    review = Review(
        user=author.id,
        movie=movie,
        movie_title=extra.pop("movie_title", "The Shawshank Redemption"),
        rating=rating,
        content=extra.pop("content", "Hope is a good thing."),
        **extra,
    )
    await review.insert()
    return review


def make_comment(author: User, content: str = "Nice review", parent: Comment = None):
    if parent is not None:
        return Reply(user=CommentAuthor.from_user(author), content=content, parent_id=parent.id)
    return Comment(user=CommentAuthor.from_user(author), content=content)


@pytest.fixture
async def alice():
    return await make_user("alice")


@pytest.fixture
async def bob():
    return await make_user("bob")


@pytest.fixture
async def carol():
    return await make_user("carol")
