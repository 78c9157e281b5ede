from sqlalchemy.orm import Session

from app.db.models.role import Role as RoleModel
from app.db.models.user import User as UserModel


def get_user_by_email(db: Session, email: str) -> UserModel | None:
    """Get a user by email."""
    return db.query(UserModel).filter(UserModel.email == email).first()


def get_user_by_id(db: Session, user_id: int) -> UserModel | None:
    """Get a user by ID."""
    return db.query(UserModel).filter(UserModel.id == user_id).first()


def get_role_by_name(db: Session, name: str) -> RoleModel | None:
    """Get a role by its name."""
    return db.query(RoleModel).filter(RoleModel.name == name).first()


def get_role_by_id(db: Session, role_id: int) -> RoleModel | None:
    """Get a role by ID."""
    return db.query(RoleModel).filter(RoleModel.id == role_id).first()


def create_user(
    db: Session,
    email: str,
    name: str,
    password_hash: str,
    role_id: int,
) -> UserModel:
    """Create a new user in the database. Pure data access - no business logic."""
    db_user = UserModel(
        email=email,
        name=name,
        password_hash=password_hash,
        role_id=role_id,
    )
    db.add(db_user)
    db.commit()
    db.refresh(db_user)
    return db_user


def get_all_users_paginated(
    db: Session, page: int = 1, page_size: int = 100
) -> tuple[list[UserModel], int]:
    """
    Get all users with pagination, sorted by name for stable pagination.

    Returns:
        Tuple of (list of users, total count)
    """
    query = db.query(UserModel)
    total = query.count()
    skip = (page - 1) * page_size
    users = query.order_by(UserModel.name, UserModel.id).offset(skip).limit(page_size).all()
    return users, total
