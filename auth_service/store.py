# auth_service/store.py
"""Credential store: every read and write of ``User`` rows goes through here."""
from typing import Optional

from sqlalchemy import and_, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .challenge import Challenge, NoChallenge, PendingChallenge, challenge_to_columns
from .errors import Conflict
from .models import User


def _challenge_is(challenge: Challenge):
    # WHERE clause matching the challenge columns exactly as they were read.
    if isinstance(challenge, PendingChallenge):
        return and_(User.otp_code == challenge.code, User.otp_expiry == challenge.expiry)
    return and_(User.otp_code.is_(None), User.otp_expiry.is_(None))


class UserStore:
    @staticmethod
    def find_by_id(db: Session, user_id: str) -> Optional[User]:
        return db.query(User).filter(User.id == user_id).first()

    @staticmethod
    def find_by_phone(db: Session, phone: str) -> Optional[User]:
        return db.query(User).filter(User.phone == phone).first()

    @staticmethod
    def phone_taken_by_other(db: Session, phone: str, user_id: str) -> bool:
        return (
            db.query(User.id).filter(User.phone == phone, User.id != user_id).first()
            is not None
        )

    @staticmethod
    def insert(db: Session, user: User) -> User:
        db.add(user)
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            raise Conflict("User with this phone number already exists")
        db.refresh(user)
        return user

    @staticmethod
    def delete(db: Session, user: User) -> None:
        db.delete(user)
        db.commit()

    @staticmethod
    def update_profile(db: Session, user: User, name: str, email: str) -> User:
        user.name = name
        user.email = email
        db.commit()
        db.refresh(user)
        return user

    @staticmethod
    def swap_challenge(
        db: Session,
        user_id: str,
        expected: Challenge,
        new: Challenge,
        pending_phone: Optional[str] = None,
    ) -> bool:
        """Replace the challenge only if it still equals ``expected``.

        ``pending_phone`` is written in the same statement so a phone change
        target always belongs to the challenge that was sent to it.
        """
        values = challenge_to_columns(new)
        values["pending_phone"] = pending_phone
        result = db.execute(
            update(User)
            .where(User.id == user_id, _challenge_is(expected))
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        db.commit()
        return result.rowcount == 1

    @staticmethod
    def consume_challenge(db: Session, user: User, expected: PendingChallenge) -> bool:
        """Clear ``expected`` and mark the user verified in one statement.

        A pending phone change is applied by the same update. Returns False
        when the challenge changed since it was read.
        """
        values = challenge_to_columns(NoChallenge())
        values["is_verified"] = True
        values["pending_phone"] = None
        if user.pending_phone:
            values["phone"] = user.pending_phone
        try:
            result = db.execute(
                update(User)
                .where(User.id == user.id, _challenge_is(expected))
                .values(**values)
                .execution_options(synchronize_session=False)
            )
            db.commit()
        except IntegrityError:
            db.rollback()
            raise Conflict("This phone number is already in use")
        db.expire(user)
        return result.rowcount == 1
