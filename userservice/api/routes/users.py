"""User resource endpoints.

Each handler runs one store call inside a `db.query` span labelled with a
readable statement, then builds the response inside a second span.
"""

from uuid import UUID

from fastapi import APIRouter, Response, status
from opentelemetry.trace import SpanKind
from structlog.contextvars import bind_contextvars

from userservice.api.dependencies import TracerDep, UserMetricsDep, UserStoreDep
from userservice.api.exceptions import InvalidRequestError
from userservice.api.models.errors import ErrorResponse
from userservice.api.models.users import UserResponse
from userservice.observability.logging import get_logger
from userservice.observability.tracing import create_span
from userservice.users.models import CreateUserRequest

logger = get_logger(__name__)

router = APIRouter()

_ERROR_RESPONSES: dict[int | str, dict[str, object]] = {
    400: {"model": ErrorResponse, "description": "Invalid input"},
    500: {"model": ErrorResponse, "description": "Persistence failure"},
}


def _db_span_attributes(statement: str) -> dict[str, str]:
    return {"db.system": "postgresql", "db.statement": statement}


def parse_user_id(raw: str) -> UUID:
    """Parse a path segment into a user id.

    Raises:
        InvalidRequestError: If the segment is not a UUID
    """
    try:
        return UUID(raw)
    except ValueError as e:
        raise InvalidRequestError(f"Invalid user id: {raw!r}") from e


@router.get(
    "/users",
    response_model=list[UserResponse],
    responses={500: _ERROR_RESPONSES[500]},
)
async def list_users(store: UserStoreDep, tracer: TracerDep) -> list[UserResponse]:
    """List every user. An empty table yields an empty array."""
    with create_span(
        tracer,
        "db.query",
        kind=SpanKind.CLIENT,
        attributes=_db_span_attributes("SELECT users"),
    ):
        users = await store.list_users()

    with create_span(tracer, "result.map", attributes={"row_count": len(users)}):
        return [UserResponse.from_user(user) for user in users]


@router.get(
    "/user/{user_id}",
    response_model=UserResponse,
    responses={404: {"description": "User not found (empty body)"}, **_ERROR_RESPONSES},
)
async def get_user(
    user_id: str,
    store: UserStoreDep,
    tracer: TracerDep,
) -> UserResponse | Response:
    """Get one user by id; 404 with an empty body when absent."""
    parsed_id = parse_user_id(user_id)
    bind_contextvars(user_id=str(parsed_id))

    with create_span(
        tracer,
        "db.query",
        kind=SpanKind.CLIENT,
        attributes=_db_span_attributes("SELECT user BY id"),
    ):
        user = await store.get_user(parsed_id)

    with create_span(tracer, "result.build", attributes={"found": user is not None}):
        if user is None:
            return Response(status_code=status.HTTP_404_NOT_FOUND)
        return UserResponse.from_user(user)


@router.post(
    "/user",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    responses=_ERROR_RESPONSES,
)
async def create_user(
    body: CreateUserRequest,
    store: UserStoreDep,
    tracer: TracerDep,
    metrics: UserMetricsDep,
) -> UserResponse:
    """Create a user with a server-generated id."""
    user = body.to_user()
    bind_contextvars(user_id=str(user.id))

    with create_span(
        tracer,
        "db.query",
        kind=SpanKind.CLIENT,
        attributes=_db_span_attributes("INSERT user"),
    ):
        created = await store.create_user(user)

    metrics.record_user_created()

    with create_span(tracer, "result.build"):
        response = UserResponse.from_user(created)

    logger.info("user_created", user_id=str(created.id))
    return response
