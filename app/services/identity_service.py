"""
Identity provider - accounts, credentials, sessions and custom claims
"""
import logging
import uuid
from typing import Any, Callable, Dict, List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.core.errors import invalid_argument, not_found, unauthenticated
from app.core.operations import Caller
from app.core.security import (
    create_access_token,
    decode_token,
    hash_password,
    validate_password,
    verify_password,
)
from app.models.identity_account import IdentityAccount
from app.utils.datetime_utils import now_utc

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 1000

CreatedListener = Callable[["IdentityProvider", IdentityAccount], None]
DeletedListener = Callable[["IdentityProvider", str], None]


class IdentityProvider:
    """
    Local identity provider backed by the identity_accounts table.

    Lifecycle listeners run after the account change is committed, the
    way provider triggers do: a failing listener is logged and does not
    undo the account change.
    """

    def __init__(self, db: Session):
        self.db = db
        self._created_listeners: List[CreatedListener] = []
        self._deleted_listeners: List[DeletedListener] = []

    def on_user_created(self, listener: CreatedListener) -> None:
        self._created_listeners.append(listener)

    def on_user_deleted(self, listener: DeletedListener) -> None:
        self._deleted_listeners.append(listener)

    def _fire(self, listeners, event: str, arg) -> None:
        for listener in listeners:
            try:
                listener(self, arg)
            except Exception:
                self.db.rollback()
                logger.error("Identity %s listener %s failed", event, getattr(listener, "__name__", listener), exc_info=True)

    def get_user(self, uid: str) -> Optional[IdentityAccount]:
        return self.db.query(IdentityAccount).filter(IdentityAccount.uid == uid).first()

    def get_user_or_404(self, uid: str) -> IdentityAccount:
        account = self.get_user(uid)
        if account is None:
            raise not_found(f"User {uid} not found")
        return account

    def get_user_by_email(self, email: str) -> Optional[IdentityAccount]:
        return (
            self.db.query(IdentityAccount)
            .filter(func.lower(IdentityAccount.email) == email.strip().lower())
            .first()
        )

    def create_user(
        self,
        email: str,
        password: str,
        display_name: Optional[str] = None,
        uid: Optional[str] = None,
    ) -> IdentityAccount:
        """Create an account and fire the on-create listeners"""
        email = email.strip().lower()
        try:
            password = validate_password(password)
        except ValueError as e:
            raise invalid_argument(str(e))
        if self.get_user_by_email(email):
            raise invalid_argument(f"An account with email {email} already exists")

        now = now_utc()
        account = IdentityAccount(
            uid=uid or uuid.uuid4().hex,
            email=email,
            display_name=display_name,
            password_hash=hash_password(password),
            disabled=False,
            custom_claims={},
            session_version=0,
            created_at=now,
            updated_at=now,
        )
        self.db.add(account)
        self.db.commit()
        self.db.refresh(account)
        logger.info("Identity account created: %s", account.uid)

        self._fire(self._created_listeners, "create", account)
        return account

    def sign_in(self, email: str, password: str) -> str:
        """Verify credentials and return a signed access token"""
        account = self.get_user_by_email(email)
        if account is None or not verify_password(password, account.password_hash):
            raise unauthenticated("Invalid email or password")
        if account.disabled:
            raise unauthenticated("Account is disabled")

        account.last_sign_in_at = now_utc()
        self.db.commit()
        return self.issue_token(account)

    def issue_token(self, account: IdentityAccount) -> str:
        claims = dict(account.custom_claims or {})
        # Reserved claims win over custom ones
        claims.update({
            "sub": account.uid,
            "email": account.email,
            "sv": account.session_version,
        })
        return create_access_token(claims)

    def verify_token(self, token: str) -> Optional[Caller]:
        """Return the caller for a valid, unrevoked token, otherwise None"""
        try:
            payload = decode_token(token)
        except ValueError:
            return None

        uid = payload.get("sub")
        if not uid:
            return None
        account = self.get_user(str(uid))
        if account is None or account.disabled:
            return None
        if payload.get("sv") != account.session_version:
            return None

        return Caller(
            uid=account.uid,
            email=account.email,
            display_name=account.display_name,
            claims=dict(account.custom_claims or {}),
        )

    def list_users(
        self,
        page_size: int = 50,
        page_token: Optional[str] = None,
    ) -> Tuple[List[IdentityAccount], Optional[str]]:
        """
        Page through accounts ordered by uid.

        Returns:
            (accounts, next_page_token); the token is None on the last page
        """
        if page_size < 1 or page_size > MAX_PAGE_SIZE:
            raise invalid_argument(f"pageSize must be between 1 and {MAX_PAGE_SIZE}")

        query = self.db.query(IdentityAccount).order_by(IdentityAccount.uid.asc())
        if page_token:
            query = query.filter(IdentityAccount.uid > page_token)
        rows = query.limit(page_size + 1).all()

        accounts = rows[:page_size]
        next_token = accounts[-1].uid if len(rows) > page_size else None
        return accounts, next_token

    def set_disabled(self, uid: str, disabled: bool, commit: bool = True) -> IdentityAccount:
        account = self.get_user_or_404(uid)
        account.disabled = disabled
        account.updated_at = now_utc()
        if commit:
            self.db.commit()
        else:
            self.db.flush()
        return account

    def update_password(self, uid: str, password: str) -> IdentityAccount:
        account = self.get_user_or_404(uid)
        try:
            password = validate_password(password)
        except ValueError as e:
            raise invalid_argument(str(e))
        account.password_hash = hash_password(password)
        account.updated_at = now_utc()
        self.db.commit()
        return account

    def revoke_refresh_tokens(self, uid: str) -> IdentityAccount:
        """Invalidate every token issued so far for the account"""
        account = self.get_user_or_404(uid)
        account.session_version = (account.session_version or 0) + 1
        account.updated_at = now_utc()
        self.db.commit()
        return account

    def set_custom_user_claims(self, uid: str, claims: Dict[str, Any]) -> IdentityAccount:
        """Replace the account's custom claims"""
        account = self.get_user_or_404(uid)
        account.custom_claims = dict(claims)
        account.updated_at = now_utc()
        self.db.commit()
        return account

    def delete_user(self, uid: str) -> None:
        """Delete the account and fire the on-delete listeners"""
        account = self.get_user_or_404(uid)
        self.db.delete(account)
        self.db.commit()
        logger.info("Identity account deleted: %s", uid)

        self._fire(self._deleted_listeners, "delete", uid)
