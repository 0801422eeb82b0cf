"""
Account provisioning and sign-in.

sign_up:  validate -> derive a unique username -> hash password -> persist
sign_in:  validate -> fetch by email -> check active/type -> verify -> touch -> issue session
sign_out: clear the session cookie

The email pre-check in sign_up is advisory. Two concurrent sign-ups with the
same email can both pass it; the unique constraint on users.email decides the
winner and the loser gets the same ConflictError it would have got from the
pre-check.
"""

import logging
from datetime import datetime, timezone
import bcrypt
from email_validator import SPECIAL_USE_DOMAIN_NAMES, EmailNotValidError, validate_email
from fastapi import Response
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sensore.auth import SessionIssuer
from sensore.exceptions import AuthError, ConflictError, PersistenceError, ValidationError
from sensore.models.user import User, USER_TYPES
from sensore.services.user_store import UserStore

log = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6
BCRYPT_MAX_BYTES = 72

ALL_FIELDS_REQUIRED = "All fields are required"
INVALID_EMAIL = "Invalid email format"
PASSWORD_TOO_SHORT = f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
INVALID_ACCOUNT_TYPE = "Invalid account type selected"
EMAIL_TAKEN = "An account with this email already exists"
INVALID_CREDENTIALS = "Invalid email or password"
ACCOUNT_DEACTIVATED = "This account has been deactivated"
CREATE_FAILED = "Unable to create account, please try again"
SIGN_IN_FAILED = "Unable to sign in, please try again"


def _blank(value) -> bool:
    return value is None or not str(value).strip()


def capitalize_first(value: str) -> str:
    if not value:
        return value
    return value[0].upper() + value[1:].lower()


def _reserved_suffix(domain: str):
    domain = domain.lower()
    for name in SPECIAL_USE_DOMAIN_NAMES:
        if domain == name or domain.endswith("." + name):
            return name
    return None


def is_valid_email(email: str) -> bool:
    """Syntax only. Dotless hosts and reserved names such as localhost or .local are accepted."""
    local, _, domain = email.rpartition("@")
    reserved = _reserved_suffix(domain) if local else None
    if reserved:
        # grammar still applies to the labels in front of the reserved name
        email = f"{local}@{domain[:-len(reserved)]}example"
    try:
        validate_email(email, check_deliverability=False, globally_deliverable=False)
    except EmailNotValidError:
        return False
    return True


def derive_username_base(email: str) -> str:
    return email.split("@")[0].lower()


def derive_names(email: str) -> tuple[str, str]:
    """jane.doe@x.com -> ("Jane", "Doe"); bob@x.com -> ("Bob", "Account")."""
    parts = email.split("@")[0].split(".")
    first_name = capitalize_first(parts[0]) or "User"
    last_name = (capitalize_first(parts[1]) if len(parts) > 1 else "") or "Account"
    return first_name, last_name


def hash_password(password: str, rounds: int = 12) -> str:
    # bcrypt only looks at the first 72 bytes
    secret = password.encode("utf-8")[:BCRYPT_MAX_BYTES]
    return bcrypt.hashpw(secret, bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(
            password.encode("utf-8")[:BCRYPT_MAX_BYTES],
            password_hash.encode("utf-8"),
        )
    except ValueError:
        # Not a bcrypt hash (e.g. a placeholder from a hand-written seed)
        return False


class AccountService:
    def __init__(self, db: AsyncSession, session_issuer: SessionIssuer, bcrypt_rounds: int = 12):
        self.store = UserStore(db)
        self.session_issuer = session_issuer
        self.bcrypt_rounds = bcrypt_rounds

    async def unique_username(self, base: str) -> str:
        """base, base1, base2, ... -- the first one not already taken."""
        username = base
        counter = 1
        while await self.store.username_exists(username):
            username = f"{base}{counter}"
            counter += 1
        return username

    async def sign_up(self, email: str, password: str, account_type: str) -> User:
        if _blank(email) or _blank(password) or _blank(account_type):
            raise ValidationError(ALL_FIELDS_REQUIRED)
        if not is_valid_email(email):
            raise ValidationError(INVALID_EMAIL)
        if len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(PASSWORD_TOO_SHORT)
        user_type = account_type.lower()
        if user_type not in USER_TYPES:
            raise ValidationError(INVALID_ACCOUNT_TYPE)

        if await self.store.get_by_email(email) is not None:
            raise ConflictError(EMAIL_TAKEN)

        username = await self.unique_username(derive_username_base(email))
        first_name, last_name = derive_names(email)
        now = datetime.now(timezone.utc)

        user = User(
            username=username,
            email=email.lower(),
            password_hash=hash_password(password, self.bcrypt_rounds),
            user_type=user_type,
            first_name=first_name,
            last_name=last_name,
            is_active=True,
            created_at=now,
            updated_at=now,
        )
        try:
            await self.store.add(user)
        except IntegrityError:
            await self.store.rollback()
            if await self.store.get_by_email(email) is not None:
                log.info("Sign-up for %s lost a uniqueness race on email", username)
                raise ConflictError(EMAIL_TAKEN)
            log.warning("Sign-up for %s rejected by the store", username, exc_info=True)
            raise PersistenceError(CREATE_FAILED)
        except SQLAlchemyError:
            await self.store.rollback()
            log.exception("Could not persist account %s", username)
            raise PersistenceError(CREATE_FAILED)

        log.info("Account created: %s (%s)", username, user_type)
        return user

    async def sign_in(self, email: str, password: str, account_type: str, response: Response) -> User:
        if _blank(email) or _blank(password) or _blank(account_type):
            raise ValidationError(ALL_FIELDS_REQUIRED)

        user = await self.store.get_by_email(email)
        if user is None:
            log.info("Sign-in rejected: unknown email")
            raise AuthError(INVALID_CREDENTIALS)
        if not user.is_active:
            log.info("Sign-in rejected for %s: deactivated", user.username)
            raise AuthError(ACCOUNT_DEACTIVATED)
        if user.user_type.lower() != account_type.lower():
            log.info("Sign-in rejected for %s: account type mismatch", user.username)
            raise AuthError(INVALID_ACCOUNT_TYPE)
        if not verify_password(password, user.password_hash):
            log.info("Sign-in rejected for %s: bad password", user.username)
            raise AuthError(INVALID_CREDENTIALS)

        try:
            await self.store.touch(user, datetime.now(timezone.utc))
        except SQLAlchemyError:
            await self.store.rollback()
            log.exception("Could not record sign-in for %s", user.username)
            raise PersistenceError(SIGN_IN_FAILED)

        self.session_issuer.issue(response, user)
        log.info("Signed in: %s (%s)", user.username, user.user_type)
        return user

    def sign_out(self, response: Response) -> None:
        self.session_issuer.clear(response)
