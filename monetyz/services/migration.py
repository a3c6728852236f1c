"""
One-Time Local -> Remote Migration

When an identity becomes active for the first time, transactions recorded
while signed out are copied into that identity's remote collection.

Decision order:
1. Flag already set            -> nothing to do
2. Local list empty            -> set flag (NOT_NEEDED)
3. Remote already has rows     -> set flag, do NOT merge (NOT_NEEDED)
4. Otherwise                   -> upsert every local transaction by id,
                                  then set flag (MIGRATED)

DESIGN DECISION: Step 3 never merges. If the remote side already has data
the local list is left behind; merge-with-dedup is out of scope.

The upsert is keyed by id, so a run that failed halfway can simply be
repeated. The flag is only set after the upsert succeeds.
"""

from enum import Enum

from pydantic import BaseModel, Field

from monetyz.log import get_logger
from monetyz.services.storage.interface import RemoteError
from monetyz.services.storage.local import LocalTransactionStore, MigrationFlagStore
from monetyz.services.storage.remote import RemoteTransactionStore


logger = get_logger(__name__)


class MigrationState(str, Enum):
    """Per-identity migration state."""
    UNCHECKED = "unchecked"
    NOT_NEEDED = "not_needed"
    MIGRATED = "migrated"


class MigrationResult(BaseModel):
    """Outcome of one protocol run."""
    
    user_id: str
    state: MigrationState
    transferred: int = Field(
        default=0,
        ge=0,
        description="Transactions upserted by this run"
    )
    
    @property
    def did_migrate(self) -> bool:
        return self.transferred > 0


class MigrationError(Exception):
    """Migration aborted; the flag was left unset so the next activation retries."""
    
    def __init__(self, user_id: str, message: str):
        self.user_id = user_id
        super().__init__(message)


class LocalToRemoteMigration:
    """Runs the migration protocol for one identity against its remote store."""
    
    def __init__(
        self,
        local_store: LocalTransactionStore,
        remote_store: RemoteTransactionStore,
        flags: MigrationFlagStore,
    ):
        self._local = local_store
        self._remote = remote_store
        self._flags = flags
    
    def state(self) -> MigrationState:
        """Current state without side effects."""
        if self._flags.is_migrated(self._remote.user_id):
            return MigrationState.MIGRATED
        return MigrationState.UNCHECKED
    
    async def run(self) -> MigrationResult:
        """
        Run the protocol once.
        
        Returns:
            MigrationResult; `transferred` is 0 unless this run copied data
            
        Raises:
            MigrationError: If reading or writing the remote store failed
        """
        user_id = self._remote.user_id
        
        if self._flags.is_migrated(user_id):
            return MigrationResult(user_id=user_id, state=MigrationState.MIGRATED)
        
        local = self._local.load()
        if not local:
            self._flags.mark_migrated(user_id)
            logger.info("migration_not_needed", user_id=user_id, reason="local_empty")
            return MigrationResult(user_id=user_id, state=MigrationState.NOT_NEEDED)
        
        try:
            existing = await self._remote.list()
        except RemoteError as e:
            logger.error("migration_failed", user_id=user_id, stage="list", error=str(e))
            raise MigrationError(user_id, f"Could not read remote transactions: {e}") from e
        
        if existing:
            self._flags.mark_migrated(user_id)
            logger.info(
                "migration_not_needed",
                user_id=user_id,
                reason="remote_not_empty",
                local_abandoned=len(local),
            )
            return MigrationResult(user_id=user_id, state=MigrationState.NOT_NEEDED)
        
        try:
            await self._remote.upsert_many(local)
        except RemoteError as e:
            logger.error("migration_failed", user_id=user_id, stage="upsert", error=str(e))
            raise MigrationError(user_id, f"Could not upload local transactions: {e}") from e
        
        self._flags.mark_migrated(user_id)
        logger.info("migration_completed", user_id=user_id, transferred=len(local))
        return MigrationResult(
            user_id=user_id,
            state=MigrationState.MIGRATED,
            transferred=len(local),
        )
