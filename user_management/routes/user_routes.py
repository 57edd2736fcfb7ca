import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import PlainTextResponse, Response
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from user_management.core import config
from user_management.database import SessionLocal
from user_management.models.user import UserRole
from user_management.repositories.user_repository import MAX_OFFSET, Page, UserRepository
from user_management.schemas.user import (
    UserCreateRequest,
    UserPageResponse,
    UserResponse,
    UserUpdateRequest,
)
from user_management.services.exceptions import DuplicateEmailError, InvalidSortError, UserNotFoundError
from user_management.services.user_service import UserService

router = APIRouter(tags=['users'])

logger = logging.getLogger(__name__)

HEALTH_MESSAGE = 'User Management Service is running!'
DATABASE_UNAVAILABLE_DETAIL = 'Database unavailable. Verify DATABASE_URL and database credentials.'
MAX_PAGE_INDEX = MAX_OFFSET // config.MAX_PAGE_SIZE


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_user_service(db: Session = Depends(get_db)) -> UserService:
    return UserService(UserRepository(db))


def database_unavailable(exc: SQLAlchemyError) -> HTTPException:
    logger.exception('Database operation failed: %s', exc)
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail=DATABASE_UNAVAILABLE_DETAIL,
    )


def to_page_response(users_page: Page[UserResponse]) -> UserPageResponse:
    return UserPageResponse(
        content=users_page.content,
        total_elements=users_page.total_elements,
        total_pages=users_page.total_pages,
        page=users_page.page,
        size=users_page.size,
    )


@router.get('/health', response_class=PlainTextResponse)
def health_check():
    return HEALTH_MESSAGE


@router.post('', response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def create_user(data: UserCreateRequest, service: UserService = Depends(get_user_service)):
    logger.info('POST /api/v1/users - Creating user with email: %s', data.email)

    try:
        return service.create_user(data)
    except DuplicateEmailError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except SQLAlchemyError as exc:
        raise database_unavailable(exc) from exc


@router.get('', response_model=list[UserResponse])
def list_users(service: UserService = Depends(get_user_service)):
    logger.info('GET /api/v1/users - Fetching all users')

    try:
        return service.get_all_users()
    except SQLAlchemyError as exc:
        raise database_unavailable(exc) from exc


@router.get('/paginated', response_model=UserPageResponse)
def list_users_paginated(
    page: int = Query(default=0, ge=0, le=MAX_PAGE_INDEX),
    size: int = Query(default=config.DEFAULT_PAGE_SIZE, ge=1, le=config.MAX_PAGE_SIZE),
    sort_by: str = Query(default='id', alias='sortBy'),
    sort_direction: str = Query(default='asc', alias='sortDirection'),
    service: UserService = Depends(get_user_service),
):
    logger.info('GET /api/v1/users/paginated - page: %s, size: %s', page, size)

    try:
        return to_page_response(service.get_all_users_paged(page, size, sort_by, sort_direction))
    except InvalidSortError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except SQLAlchemyError as exc:
        raise database_unavailable(exc) from exc


@router.get('/filter', response_model=UserPageResponse)
def list_users_filtered(
    active: bool | None = Query(default=None),
    role: UserRole | None = Query(default=None),
    page: int = Query(default=0, ge=0, le=MAX_PAGE_INDEX),
    size: int = Query(default=config.DEFAULT_PAGE_SIZE, ge=1, le=config.MAX_PAGE_SIZE),
    sort_by: str = Query(default='id', alias='sortBy'),
    sort_direction: str = Query(default='asc', alias='sortDirection'),
    service: UserService = Depends(get_user_service),
):
    logger.info('GET /api/v1/users/filter - active: %s, role: %s', active, role)

    try:
        users_page = service.get_users_with_filter(active, role, page, size, sort_by, sort_direction)
        return to_page_response(users_page)
    except InvalidSortError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except SQLAlchemyError as exc:
        raise database_unavailable(exc) from exc


@router.get('/{user_id}', response_model=UserResponse)
def get_user(user_id: int, service: UserService = Depends(get_user_service)):
    logger.info('GET /api/v1/users/%s - Fetching user', user_id)

    try:
        return service.get_user_by_id(user_id)
    except UserNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except SQLAlchemyError as exc:
        raise database_unavailable(exc) from exc


@router.put('/{user_id}', response_model=UserResponse)
def update_user(
    user_id: int,
    data: UserUpdateRequest,
    service: UserService = Depends(get_user_service),
):
    logger.info('PUT /api/v1/users/%s - Updating user', user_id)

    try:
        return service.update_user(user_id, data)
    except UserNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except DuplicateEmailError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except SQLAlchemyError as exc:
        raise database_unavailable(exc) from exc


@router.delete('/{user_id}', status_code=status.HTTP_204_NO_CONTENT, response_class=Response)
def delete_user(user_id: int, service: UserService = Depends(get_user_service)):
    logger.info('DELETE /api/v1/users/%s - Deleting user', user_id)

    try:
        service.delete_user(user_id)
    except UserNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except SQLAlchemyError as exc:
        raise database_unavailable(exc) from exc

    return Response(status_code=status.HTTP_204_NO_CONTENT)
