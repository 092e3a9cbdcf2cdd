"""
Shared test fixtures.

Each test gets a fresh in-memory MongoDB (mongomock) named after the configured
test database, an app wired to it through `get_db`, and a TestClient. The whole
database is dropped after every test.
"""

import mongomock
import pytest
from faker import Faker
from fastapi.testclient import TestClient

from config import get_settings
from database import drop_database, get_db
from main import create_app
from schemas import IMAGES, JOURNEYS, USERS

OWNER = "elenaG"


# -----------------------------------------------------------------------------
# Database
# -----------------------------------------------------------------------------


@pytest.fixture
def db():
    """Test database, dropped after each test so no data leaks between tests."""
    settings = get_settings()
    client = mongomock.MongoClient(settings.test_database_url)
    database = client[settings.test_database_name]
    yield database
    drop_database(database)


@pytest.fixture
def app(db):
    application = create_app(get_settings())
    application.dependency_overrides[get_db] = lambda: db
    return application


@pytest.fixture
def client(app):
    return TestClient(app)


# -----------------------------------------------------------------------------
# Seed data
# -----------------------------------------------------------------------------


@pytest.fixture
def fake():
    Faker.seed(4321)
    return Faker()


def generate_user_data(fake: Faker) -> dict:
    return {
        "firstName": fake.first_name(),
        "lastName": fake.last_name(),
        "username": fake.unique.user_name(),
        "password_hash": fake.sha256(),
        "salt": fake.hexify("^" * 32),
    }


def generate_journey_data(fake: Faker, owner: str = OWNER) -> dict:
    start = fake.date_time_between(start_date="-2y", end_date="-1y")
    return {
        "title": fake.sentence(),
        "location": fake.country(),
        "startDate": start,
        "endDate": fake.date_time_between(start_date=start, end_date="-6M"),
        "description": fake.paragraph(),
        "created": fake.date_time_between(start_date="-6M", end_date="now"),
        "loggedInUserName": owner,
    }


def generate_image_data(fake: Faker) -> dict:
    return {
        "journeyId": fake.uuid4(),
        "imgAddress": fake.image_url(),
        "username": OWNER,
        "journeyTitle": fake.sentence(),
    }


@pytest.fixture
def seed_users(db, fake):
    db[USERS].insert_many([generate_user_data(fake) for _ in range(5)])
    return db[USERS]


@pytest.fixture
def seed_journeys(db, fake):
    db[JOURNEYS].insert_many([generate_journey_data(fake) for _ in range(5)])
    return db[JOURNEYS]


@pytest.fixture
def seed_images(db, fake):
    db[IMAGES].insert_many([generate_image_data(fake) for _ in range(5)])
    return db[IMAGES]
