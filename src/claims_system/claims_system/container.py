from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .claims.attachment_store import AttachmentStore, LocalAttachmentStore
from .claims.mysql_claim_repository import MySQLClaimRepository
from .claims.repository import ClaimRepository
from .claims.service import ClaimService
from .core.constants import DEFAULT_UPLOAD_URL_PREFIX, MAX_ATTACHMENT_BYTES
from .database.connection import DBConfig, DatabaseConnection
from .reports.service import ClaimReportService
from .roles.mysql_role_repository import MySQLRoleRepository
from .roles.repository import RoleRepository
from .roles.service import RoleService
from .users.mysql_user_repository import MySQLUserRepository
from .users.repository import UserRepository
from .users.service import AuthService, UserService


@dataclass(frozen=True)
class Container:
    users_repo: UserRepository
    roles_repo: RoleRepository
    claims_repo: ClaimRepository
    attachment_store: AttachmentStore

    auth_service: AuthService
    user_service: UserService
    claim_service: ClaimService
    role_service: RoleService
    report_service: ClaimReportService

    conn: Optional[DatabaseConnection] = None


def build_services(
    *,
    users_repo: UserRepository,
    roles_repo: RoleRepository,
    claims_repo: ClaimRepository,
    attachment_store: AttachmentStore,
    max_attachment_bytes: int = MAX_ATTACHMENT_BYTES,
    strict_transitions: bool = False,
    conn: Optional[DatabaseConnection] = None,
) -> Container:
    """Wire services on top of already-built repositories."""
    return Container(
        users_repo=users_repo,
        roles_repo=roles_repo,
        claims_repo=claims_repo,
        attachment_store=attachment_store,
        auth_service=AuthService(users_repo, roles_repo),
        user_service=UserService(users_repo),
        claim_service=ClaimService(
            claims_repo,
            attachment_store,
            max_attachment_bytes=max_attachment_bytes,
            strict_transitions=strict_transitions,
        ),
        role_service=RoleService(roles_repo, users_repo),
        report_service=ClaimReportService(claims_repo),
        conn=conn,
    )


def build_container(
    *,
    db_config: dict,
    upload_folder: str | Path,
    upload_url_prefix: str = DEFAULT_UPLOAD_URL_PREFIX,
    max_attachment_bytes: int = MAX_ATTACHMENT_BYTES,
    strict_transitions: bool = False,
) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))

    return build_services(
        users_repo=MySQLUserRepository(conn),
        roles_repo=MySQLRoleRepository(conn),
        claims_repo=MySQLClaimRepository(conn),
        attachment_store=LocalAttachmentStore(upload_folder, url_prefix=upload_url_prefix),
        max_attachment_bytes=max_attachment_bytes,
        strict_transitions=strict_transitions,
        conn=conn,
    )
