from sqlalchemy.orm import Session

import app.repositories.user as user_repo
from app.core.security import get_password_hash, validate_password
from app.db.models.user import User as UserModel
from app.errors import DomainValidationError, DuplicateResourceError, ForbiddenError, NotFoundError
from app.schemas.user import UserCreate

DEFAULT_ROLE = "customer"


def create_user(db: Session, user_data: UserCreate) -> UserModel:
    """
    Create a new user with business logic validation.

    - Validates email uniqueness
    - Validates password requirements
    - Validates role_id exists (if provided)
    - Defaults to "customer" role if role_id not provided
    """
    existing_user = user_repo.get_user_by_email(db, user_data.email)
    if existing_user:
        raise DuplicateResourceError("Email already registered")

    is_valid, error_message = validate_password(user_data.password)
    if not is_valid:
        raise DomainValidationError(error_message)

    if user_data.role_id is None:
        role = user_repo.get_role_by_name(db, DEFAULT_ROLE)
        if not role:
            raise NotFoundError(f"Role '{DEFAULT_ROLE}' not found")
    else:
        role = user_repo.get_role_by_id(db, user_data.role_id)
        if not role:
            raise NotFoundError(f"Role with id {user_data.role_id} not found")

    return user_repo.create_user(
        db,
        email=user_data.email,
        name=user_data.name,
        password_hash=get_password_hash(user_data.password),
        role_id=role.id,
    )


def get_user(db: Session, user_id: int, current_user: UserModel) -> UserModel:
    """
    Get a user by ID with authorization checks.

    - Admin and Employee can get any user
    - Customers can only get themselves

    Raises:
        NotFoundError: If user doesn't exist
        ForbiddenError: If a customer asks for another user
    """
    user = user_repo.get_user_by_id(db, user_id)
    if not user:
        raise NotFoundError("User not found")

    if current_user.role.name == "customer" and current_user.id != user_id:
        raise ForbiddenError("You can only access your own user information")

    return user
