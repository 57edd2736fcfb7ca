"""Business rules for managing users."""

import logging

from sqlalchemy.exc import IntegrityError

from user_management.models.user import User, UserRole, utcnow
from user_management.repositories.user_repository import (
    SORT_ASC,
    SORT_DESC,
    Page,
    PageRequest,
    UserRepository,
)
from user_management.schemas.user import UserCreateRequest, UserResponse, UserUpdateRequest
from user_management.services.exceptions import DuplicateEmailError, InvalidSortError, UserNotFoundError

logger = logging.getLogger(__name__)

SORTABLE_FIELDS = {
    'id': 'id',
    'name': 'name',
    'email': 'email',
    'phone': 'phone',
    'role': 'role',
    'active': 'active',
    'createdAt': 'created_at',
    'created_at': 'created_at',
    'updatedAt': 'updated_at',
    'updated_at': 'updated_at',
}


def to_response(user: User) -> UserResponse:
    return UserResponse.model_validate(user)


def build_page_request(page: int, size: int, sort_by: str, sort_direction: str) -> PageRequest:
    column_name = SORTABLE_FIELDS.get(sort_by)
    if column_name is None:
        raise InvalidSortError(sort_by, sorted(SORTABLE_FIELDS))

    direction = SORT_DESC if (sort_direction or '').lower() == SORT_DESC else SORT_ASC
    return PageRequest(page=page, size=size, sort_by=column_name, direction=direction)


class UserService:
    def __init__(self, repository: UserRepository):
        self.repository = repository

    def create_user(self, request: UserCreateRequest) -> UserResponse:
        logger.info('Creating new user with email: %s', request.email)

        if self.repository.exists_by_email(request.email):
            logger.warning('User with email %s already exists', request.email)
            raise DuplicateEmailError(request.email)

        user = User(
            name=request.name,
            email=request.email,
            phone=request.phone,
            role=request.role if request.role is not None else UserRole.USER,
            active=request.active if request.active is not None else True,
        )
        saved_user = self._save_with_unique_email(user, request.email)

        logger.info('User created successfully with ID: %s', saved_user.id)
        return to_response(saved_user)

    def get_user_by_id(self, user_id: int) -> UserResponse:
        logger.info('Fetching user with ID: %s', user_id)
        return to_response(self._get_existing(user_id))

    def get_all_users(self) -> list[UserResponse]:
        logger.info('Fetching all users')
        return [to_response(user) for user in self.repository.find_all()]

    def get_all_users_paged(
        self,
        page: int,
        size: int,
        sort_by: str,
        sort_direction: str,
    ) -> Page[UserResponse]:
        logger.info(
            'Fetching users - page: %s, size: %s, sortBy: %s, direction: %s',
            page, size, sort_by, sort_direction,
        )
        page_request = build_page_request(page, size, sort_by, sort_direction)
        return self.repository.find_all_paged(page_request).map(to_response)

    def get_users_with_filter(
        self,
        active: bool | None,
        role: UserRole | None,
        page: int,
        size: int,
        sort_by: str,
        sort_direction: str,
    ) -> Page[UserResponse]:
        logger.info('Fetching users with filter - active: %s, role: %s', active, role)
        page_request = build_page_request(page, size, sort_by, sort_direction)

        if active is not None and role is not None:
            users_page = self.repository.find_paged_by_active_and_role(active, role, page_request)
        elif active is not None:
            # active=False on its own is not applied as a filter.
            if active:
                users_page = self.repository.find_paged_by_active(True, page_request)
            else:
                users_page = self.repository.find_all_paged(page_request)
        elif role is not None:
            users_page = self.repository.find_paged_by_role(role, page_request)
        else:
            users_page = self.repository.find_all_paged(page_request)

        return users_page.map(to_response)

    def update_user(self, user_id: int, request: UserUpdateRequest) -> UserResponse:
        logger.info('Updating user with ID: %s', user_id)

        user = self._get_existing(user_id)

        if request.email is not None and request.email != user.email:
            if self.repository.exists_by_email(request.email):
                logger.warning('User with email %s already exists', request.email)
                raise DuplicateEmailError(request.email)
            user.email = request.email

        if request.name is not None:
            user.name = request.name
        if request.phone is not None:
            user.phone = request.phone
        if request.role is not None:
            user.role = request.role
        if request.active is not None:
            user.active = request.active

        user.updated_at = utcnow()
        updated_user = self._save_with_unique_email(user, user.email)

        logger.info('User updated successfully with ID: %s', updated_user.id)
        return to_response(updated_user)

    def delete_user(self, user_id: int) -> None:
        logger.info('Deleting user with ID: %s', user_id)

        if not self.repository.exists_by_id(user_id):
            raise UserNotFoundError(user_id)

        self.repository.delete_by_id(user_id)
        logger.info('User deleted successfully with ID: %s', user_id)

    def _get_existing(self, user_id: int) -> User:
        user = self.repository.find_by_id(user_id)
        if user is None:
            raise UserNotFoundError(user_id)
        return user

    def _save_with_unique_email(self, user: User, email: str) -> User:
        user_id = user.id
        try:
            return self.repository.save(user)
        except IntegrityError as exc:
            # A concurrent writer can claim the email between the check and the commit.
            owner = self.repository.find_by_email(email)
            if owner is not None and owner.id != user_id:
                logger.warning('User with email %s already exists', email)
                raise DuplicateEmailError(email) from exc
            raise
