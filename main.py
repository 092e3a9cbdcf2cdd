import hashlib
import logging
import secrets
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

from fastapi import Depends, FastAPI, Response, status
from fastapi.middleware.cors import CORSMiddleware
from pymongo.database import Database

from config import Settings, get_settings, setup_logging
from database import (
    connect,
    create_document,
    delete_document,
    find_document,
    get_db,
    get_document,
    get_documents,
    update_document,
)
from errors import NotFoundError, ValidationError, register_error_handlers
from schemas import (
    IMAGES,
    JOURNEYS,
    USERS,
    ImageCreate,
    ImageOut,
    JourneyCreate,
    JourneyList,
    JourneyOut,
    JourneyUpdate,
    UserCreate,
    UserOut,
    check_date_order,
    to_store_datetime,
)

logger = logging.getLogger(__name__)

INDEX_PAGE = Path(__file__).parent / "public" / "index.html"


# ----------------------
# Utility functions
# ----------------------

def _hash_password(password: str, salt: str) -> str:
    return hashlib.sha256((salt + password).encode()).hexdigest()


def _get_user_by_username(db: Database, username: str) -> Optional[dict]:
    return find_document(db, USERS, {"username": username})


def _check_against_stored_dates(db: Database, journey_id: str, changes: dict) -> None:
    """Reject a one-sided date change that would put the trip out of order."""
    stored = get_document(db, JOURNEYS, journey_id)
    if stored is None:
        raise NotFoundError("Journey", journey_id)
    start = changes.get("startDate", stored.get("startDate"))
    end = changes.get("endDate", stored.get("endDate"))
    try:
        check_date_order(start, end)
    except ValueError as e:
        raise ValidationError(str(e), location="endDate" if "endDate" in changes else "startDate") from e


# ----------------------
# App
# ----------------------

def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        setup_logging(settings.log_level, settings.log_format)
        app.state.db = connect(settings.database_url, settings.database_name)
        yield
        app.state.db.client.close()

    app = FastAPI(title="Travel Journal API", lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_error_handlers(app)

    # ---- Landing page ----

    @app.get("/")
    def root():
        return Response(content=INDEX_PAGE.read_text(encoding="utf-8"), media_type="text/html; charset=UTF-8")

    # ---- Users ----

    @app.get("/users", response_model=List[UserOut])
    def list_users(db: Database = Depends(get_db)):
        return [UserOut.from_document(u) for u in get_documents(db, USERS)]

    @app.post("/users/create", response_model=UserOut, status_code=status.HTTP_201_CREATED)
    def create_user(req: UserCreate, db: Database = Depends(get_db)):
        if _get_user_by_username(db, req.username):
            raise ValidationError("Username already taken", location="username")

        salt = secrets.token_hex(16)
        user_doc = {
            "username": req.username,
            "firstName": req.firstName,
            "lastName": req.lastName,
            "password_hash": _hash_password(req.password, salt),
            "salt": salt,
        }
        user_doc = create_document(db, USERS, user_doc)
        logger.info(f"user {req.username} created", extra={"collection": USERS, "document_id": str(user_doc["_id"])})
        return UserOut.from_document(user_doc)

    # ---- Journeys ----

    @app.get("/journeys/{username}", response_model=JourneyList)
    def list_journeys(username: str, db: Database = Depends(get_db)):
        journeys = get_documents(db, JOURNEYS, {"loggedInUserName": username})
        return JourneyList(journeys=[JourneyOut.from_document(j) for j in journeys])

    @app.get("/journeys/id/{journey_id}", response_model=JourneyOut)
    def get_journey(journey_id: str, db: Database = Depends(get_db)):
        journey = get_document(db, JOURNEYS, journey_id)
        if journey is None:
            raise NotFoundError("Journey", journey_id)
        return JourneyOut.from_document(journey)

    @app.post("/journeys/create", response_model=JourneyOut, status_code=status.HTTP_201_CREATED)
    def create_journey(req: JourneyCreate, db: Database = Depends(get_db)):
        journey_doc = req.model_dump()
        if journey_doc["created"] is None:
            journey_doc["created"] = to_store_datetime(datetime.now(timezone.utc))
        journey_doc = create_document(db, JOURNEYS, journey_doc)
        logger.info("journey created", extra={"collection": JOURNEYS, "document_id": str(journey_doc["_id"])})
        return JourneyOut.from_document(journey_doc)

    @app.put("/journeys/update/{journey_id}", status_code=status.HTTP_204_NO_CONTENT, response_class=Response)
    def update_journey(journey_id: str, req: JourneyUpdate, db: Database = Depends(get_db)):
        if req.id is not None and req.id != journey_id:
            raise ValidationError(
                f"Request path id ({journey_id}) and request body id ({req.id}) must match",
                location="id",
            )
        changes = req.changes()
        if not changes:
            raise ValidationError("No updatable fields in request body")
        if ("startDate" in changes) != ("endDate" in changes):
            _check_against_stored_dates(db, journey_id, changes)
        if not update_document(db, JOURNEYS, journey_id, changes):
            raise NotFoundError("Journey", journey_id)
        logger.info(f"journey updated: {sorted(changes)}", extra={"collection": JOURNEYS, "document_id": journey_id})
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    @app.delete("/journeys/{journey_id}", status_code=status.HTTP_204_NO_CONTENT, response_class=Response)
    def delete_journey(journey_id: str, db: Database = Depends(get_db)):
        if delete_document(db, JOURNEYS, journey_id):
            logger.info("journey deleted", extra={"collection": JOURNEYS, "document_id": journey_id})
        else:
            logger.info("journey already absent", extra={"collection": JOURNEYS, "document_id": journey_id})
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    # ---- Images ----

    @app.post("/journeys/add-img", response_model=ImageOut, status_code=status.HTTP_201_CREATED)
    def add_image(req: ImageCreate, db: Database = Depends(get_db)):
        image_doc = create_document(db, IMAGES, req.model_dump())
        logger.info(
            f"image added to journey {req.journeyId}",
            extra={"collection": IMAGES, "document_id": str(image_doc["_id"])},
        )
        return ImageOut.from_document(image_doc)

    @app.get("/journeys/img/{journey_id}", response_model=List[ImageOut])
    def list_images(journey_id: str, db: Database = Depends(get_db)):
        return [ImageOut.from_document(i) for i in get_documents(db, IMAGES, {"journeyId": journey_id})]

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    settings = get_settings()
    uvicorn.run(app, host="0.0.0.0", port=settings.port)
