from dataclasses import dataclass

from src.dailymenu.core.services import (
    AuthProviderClient,
    DbSessionService,
    IdentityReconciler,
    RoleAuthorizer,
    SessionValidator,
)


@dataclass
class ApplicationDependencies:
    auth_provider: AuthProviderClient
    session_validator: SessionValidator
    database_service: DbSessionService
    elevated_database_service: DbSessionService
    identity_reconciler: IdentityReconciler
    role_authorizer: RoleAuthorizer
