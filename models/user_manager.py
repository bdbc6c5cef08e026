"""User Manager.

Keeps the local users table in step with the identity provider and resolves
provider ids to local user ids.
"""

import logging
from typing import Optional

from db.database_manager import DatabaseManager
from models.user import User

logger = logging.getLogger(__name__)


class UserNotFound(Exception):
    """Raised when a requested user cannot be found in the database."""

    def __init__(self, message: str = "User not found") -> None:
        """Initialize the exception with an optional message."""
        self.message = message
        super().__init__(self.message)


class UserManager:
    """Queries and upserts for `User` objects via `DatabaseManager`."""

    def __init__(self, *, db_manager: DatabaseManager) -> None:
        """Create a new `UserManager` bound to the given database manager."""
        self.db_manager: DatabaseManager = db_manager

    def get_user_id_by_auth_id(self, *, auth_id: str) -> str:
        """Return the local user id for an identity provider id or raise `UserNotFound`."""
        row = self.db_manager.fetchone("SELECT id FROM users WHERE auth_id = ?", (auth_id,))
        if not row:
            raise UserNotFound(f"User with auth id {auth_id} not found.")
        return str(row["id"])

    def get_user_by_auth_id(self, *, auth_id: str) -> User:
        """Return the full `User` for an identity provider id or raise `UserNotFound`."""
        row = self.db_manager.fetchone(
            "SELECT id, auth_id, email_address, username, first_name, last_name, "
            "profile_image_url, created_at, updated_at FROM users WHERE auth_id = ?",
            (auth_id,),
        )
        if not row:
            raise UserNotFound(f"User with auth id {auth_id} not found.")
        return User.from_dict(row)

    def upsert_user(self, *, user: User) -> str:
        """Insert the user or refresh its profile columns; returns the local id.

        The identity provider id is the conflict key, so a user created twice
        keeps its original local id. A new user also gets an empty streak row.
        """
        with self.db_manager.transaction():
            user_id = self._upsert_user_row(user)
            self.db_manager.execute(
                "INSERT INTO user_streaks (user_id) VALUES (?) ON CONFLICT (user_id) DO NOTHING",
                (user_id,),
            )
        logger.info("Upserted user %s (auth id %s)", user_id, user.auth_id)
        return user_id

    def _upsert_user_row(self, user: User) -> str:
        row = self.db_manager.fetchone(
            """
            INSERT INTO users (id, auth_id, email_address, username, first_name, last_name,
                               profile_image_url)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT (auth_id) DO UPDATE SET
                email_address = EXCLUDED.email_address,
                username = EXCLUDED.username,
                first_name = EXCLUDED.first_name,
                last_name = EXCLUDED.last_name,
                profile_image_url = EXCLUDED.profile_image_url,
                updated_at = NOW()
            RETURNING id
            """,
            (
                user.id,
                user.auth_id,
                user.email_address,
                user.username,
                user.first_name,
                user.last_name,
                user.profile_image_url,
            ),
        )
        return str(row["id"]) if row else str(user.id)

    def delete_user_by_auth_id(self, *, auth_id: str) -> bool:
        """Delete a user by identity provider id; returns True if a row was deleted."""
        row: Optional[dict] = self.db_manager.fetchone(
            "DELETE FROM users WHERE auth_id = ? RETURNING id", (auth_id,)
        )
        if row is None:
            return False
        logger.info("Deleted user %s (auth id %s)", row["id"], auth_id)
        return True
