from contextlib import closing

from loguru import logger

from src.dailymenu.core.exceptions import (
    CreateFailedError,
    ReconciliationError,
    StoreError,
    UpdateFailedError,
)
from src.dailymenu.core.models.session import CredentialEvent
from src.dailymenu.core.services.database.db_session import DbSessionService
from src.dailymenu.entities.core.user.entity import (
    ExternalIdentity,
    InternalUser,
    Role,
    UserUpdate,
)
from src.dailymenu.entities.core.user.store import ElevatedUserStore


class IdentityReconciler:
    """Finds or creates the internal user row backing an external identity.

    Both sign-in entry points (password and OAuth callback) go through
    ``reconcile``; they differ only in how they obtained the identity.
    """

    def __init__(self, elevated_db: DbSessionService) -> None:
        self._elevated_db = elevated_db

    async def reconcile(
        self, identity: ExternalIdentity, event: CredentialEvent
    ) -> InternalUser:
        """Resolve ``identity`` to an internal user.

        1. A row whose id is the external id wins. OAuth callbacks refresh
           its name from the provider; password sign-ins return it as is.
        2. Otherwise a row with the same email is relinked to the external id.
        3. Otherwise a new employee row is created.

        Raises:
            CreateFailedError: The new row could not be inserted.
            UpdateFailedError: The relink or profile refresh could not be written.
            ReconciliationError: The users relation could not be read.
        """
        with closing(self._elevated_db.get_session()) as session:
            store = ElevatedUserStore(session)
            try:
                user = store.find_by_id(identity.external_id)
                if user is None:
                    by_email = store.find_by_email(identity.email) if identity.email else None
                else:
                    by_email = None
            except StoreError as e:
                logger.error(
                    "users lookup failed during reconciliation",
                    external_id=identity.external_id,
                    email=identity.email,
                )
                raise ReconciliationError(
                    "could not read users", identity.external_id, identity.email
                ) from e

            if user is not None:
                if event is CredentialEvent.OAUTH_CALLBACK:
                    return self._refresh_profile(store, user, identity)
                return user

            if by_email is not None:
                if by_email.id != identity.external_id:
                    return self._relink(store, by_email, identity)
                return by_email

            return self._create(store, identity)

    def _refresh_profile(
        self, store: ElevatedUserStore, user: InternalUser, identity: ExternalIdentity
    ) -> InternalUser:
        changes = UserUpdate(full_name=identity.display_name or user.full_name)
        try:
            updated = store.update(user.id, changes)
        except StoreError as e:
            raise UpdateFailedError(
                "could not refresh profile", identity.external_id, identity.email
            ) from e
        if updated is None:
            raise UpdateFailedError(
                "users row vanished during refresh", identity.external_id, identity.email
            )
        return updated

    def _relink(
        self, store: ElevatedUserStore, user: InternalUser, identity: ExternalIdentity
    ) -> InternalUser:
        # Two distinct provider accounts sharing one seeded email both land
        # here and the later one takes the row over.
        logger.warning(
            "Relinking users row to provider identity",
            previous_id=user.id,
            external_id=identity.external_id,
            email=identity.email,
        )
        try:
            return store.relink(identity.email, identity.external_id)
        except StoreError as e:
            logger.error(
                "Relink failed",
                previous_id=user.id,
                external_id=identity.external_id,
                email=identity.email,
            )
            raise UpdateFailedError(
                "could not relink user", identity.external_id, identity.email
            ) from e

    def _create(self, store: ElevatedUserStore, identity: ExternalIdentity) -> InternalUser:
        if not identity.email:
            raise CreateFailedError(
                "provider identity has no email", identity.external_id, identity.email
            )

        new_user = InternalUser(
            id=identity.external_id,
            email=identity.email,
            full_name=identity.display_name or identity.email_local_part,
            phone=identity.phone,
            company_id=None,
            role=Role.EMPLOYEE,
            is_active=True,
        )
        try:
            created = store.insert(new_user)
        except StoreError as e:
            logger.error(
                "User creation failed",
                external_id=identity.external_id,
                email=identity.email,
            )
            raise CreateFailedError(
                "could not create user", identity.external_id, identity.email
            ) from e

        logger.info(
            "Created users row for new identity",
            external_id=created.id,
            email=created.email,
        )
        return created
