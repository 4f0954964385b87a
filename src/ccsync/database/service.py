"""Database service storing vendor configuration in SQLite."""

import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Set

from sqlalchemy import create_engine, func, select
from sqlalchemy.orm import Session, sessionmaker

from ..core.store.events import ChangeNotificationBus
from ..core.store.repository import (
    CannotRemoveLastVendorError,
    VendorAlreadyExistsError,
    VendorNotFoundError,
)
from ..models import SyncManifest, Vendor
from .models import AppSetting, Base, VendorRecord

logger = logging.getLogger(__name__)

CURRENT_VENDOR_KEY = "current_vendor"
SYNC_MANIFEST_KEY = "sync_manifest"
REVISION_KEY = "revision"


class DatabaseService:
    """Configuration repository backed by a SQLite database.

    Every vendor or marker write bumps a revision counter and publishes on
    the change bus, if one is attached. Saving the sync manifest does
    neither: it is sync bookkeeping, not a configuration change.
    """

    def __init__(
        self,
        db_path: Optional[Path] = None,
        change_bus: Optional[ChangeNotificationBus] = None,
    ) -> None:
        """Initialize database service.

        Args:
            db_path: Path to SQLite database file.
                    If None, uses default ~/.ccswitch/ccsync.db
            change_bus: Bus notified after every configuration write
        """
        if db_path is None:
            db_path = Path.home() / ".ccswitch" / "ccsync.db"

        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self.change_bus = change_bus

        self.engine = create_engine(f"sqlite:///{self.db_path}", echo=False)
        self.SessionLocal = sessionmaker(
            autocommit=False, autoflush=False, bind=self.engine
        )

        # create_all is a no-op for tables that already exist
        self.init_db()
        logger.debug("Database initialized at: %s", self.db_path)

    def init_db(self) -> None:
        """Initialize database schema."""
        Base.metadata.create_all(bind=self.engine)

    def get_session(self) -> Session:
        """Get a new database session.

        Returns:
            SQLAlchemy Session object

        Note:
            Caller is responsible for closing the session
        """
        return self.SessionLocal()

    # =========================================================================
    # Vendor Operations
    # =========================================================================

    def get_all_vendors(self) -> List[Vendor]:
        """Get all vendors in insertion order."""
        with self.get_session() as session:
            stmt = select(VendorRecord).order_by(VendorRecord.position)
            return [record.to_vendor() for record in session.scalars(stmt)]

    def get_vendor(self, vendor_id: str) -> Optional[Vendor]:
        """Get vendor by id.

        Args:
            vendor_id: Vendor identifier

        Returns:
            Vendor or None if not found
        """
        with self.get_session() as session:
            record = session.get(VendorRecord, vendor_id)
            return record.to_vendor() if record else None

    def add_vendor(self, vendor: Vendor) -> None:
        """Add a new vendor at the end of the list.

        The first vendor ever added becomes current.

        Raises:
            VendorAlreadyExistsError: If the id is taken
        """
        with self.get_session() as session:
            if session.get(VendorRecord, vendor.id) is not None:
                raise VendorAlreadyExistsError(vendor.id)

            last_position = session.scalar(select(func.max(VendorRecord.position)))
            record = VendorRecord(
                id=vendor.id,
                name=vendor.name,
                position=(last_position if last_position is not None else -1) + 1,
            )
            record.env = vendor.env
            session.add(record)

            if self._get_setting(session, CURRENT_VENDOR_KEY) is None:
                self._set_setting(session, CURRENT_VENDOR_KEY, vendor.id)

            session.commit()

        logger.info("Added vendor: %s", vendor.id)
        self._changed()

    def update_vendor(self, vendor: Vendor) -> None:
        """Replace a vendor's name and env.

        An edited preset stops being a preset.

        Raises:
            VendorNotFoundError: If the vendor does not exist
        """
        with self.get_session() as session:
            record = self._require(session, vendor.id)
            record.name = vendor.name
            record.env = vendor.env
            record.is_preset = False
            session.commit()

        logger.debug("Updated vendor: %s", vendor.id)
        self._changed()

    def remove_vendor(self, vendor_id: str) -> None:
        """Remove a vendor.

        Removing the current vendor makes the first remaining one current.

        Raises:
            VendorNotFoundError: If the vendor does not exist
            CannotRemoveLastVendorError: If it is the only vendor
        """
        with self.get_session() as session:
            record = self._require(session, vendor_id)
            count = session.scalar(select(func.count()).select_from(VendorRecord))
            if count == 1:
                raise CannotRemoveLastVendorError(vendor_id)

            session.delete(record)
            session.flush()

            if self._get_setting(session, CURRENT_VENDOR_KEY) == vendor_id:
                first = session.scalar(
                    select(VendorRecord).order_by(VendorRecord.position).limit(1)
                )
                self._set_setting(session, CURRENT_VENDOR_KEY, first.id)

            session.commit()

        logger.info("Removed vendor: %s", vendor_id)
        self._changed()

    # =========================================================================
    # Markers
    # =========================================================================

    def get_current_vendor(self) -> Optional[Vendor]:
        with self.get_session() as session:
            vendor_id = self._get_setting(session, CURRENT_VENDOR_KEY)
            if vendor_id is None:
                return None
            record = session.get(VendorRecord, vendor_id)
            return record.to_vendor() if record else None

    def set_current_vendor(self, vendor_id: str) -> None:
        """Mark a vendor as current.

        Raises:
            VendorNotFoundError: If the vendor does not exist
        """
        with self.get_session() as session:
            self._require(session, vendor_id)
            self._set_setting(session, CURRENT_VENDOR_KEY, vendor_id)
            session.commit()

        logger.info("Current vendor: %s", vendor_id)
        self._changed()

    def get_favorites(self) -> Set[str]:
        with self.get_session() as session:
            stmt = select(VendorRecord.id).where(VendorRecord.is_favorite.is_(True))
            return set(session.scalars(stmt))

    def set_favorites(self, vendor_ids: Iterable[str]) -> None:
        self._set_flag("is_favorite", set(vendor_ids))

    def get_presets(self) -> Set[str]:
        with self.get_session() as session:
            stmt = select(VendorRecord.id).where(VendorRecord.is_preset.is_(True))
            return set(session.scalars(stmt))

    def set_presets(self, vendor_ids: Iterable[str]) -> None:
        self._set_flag("is_preset", set(vendor_ids))

    # =========================================================================
    # Sync manifest
    # =========================================================================

    def load_sync_manifest(self) -> Optional[SyncManifest]:
        """Load the locally persisted sync manifest.

        Returns:
            SyncManifest or None if never saved or unreadable
        """
        with self.get_session() as session:
            raw = self._get_setting(session, SYNC_MANIFEST_KEY)
        if raw is None:
            return None
        try:
            return SyncManifest.model_validate_json(raw)
        except ValueError as e:
            logger.warning("Ignoring unreadable sync manifest: %s", e)
            return None

    def save_sync_manifest(self, manifest: SyncManifest) -> None:
        with self.get_session() as session:
            self._set_setting(
                session, SYNC_MANIFEST_KEY, manifest.model_dump_json(by_alias=True)
            )
            session.commit()

    # =========================================================================
    # Change tracking
    # =========================================================================

    def get_revision(self) -> int:
        """Counter bumped on every configuration write.

        Lets other processes notice changes by polling.
        """
        with self.get_session() as session:
            raw = self._get_setting(session, REVISION_KEY)
        return int(raw) if raw is not None else 0

    def get_statistics(self) -> Dict[str, Any]:
        """Get database statistics.

        Returns:
            Dictionary with statistics
        """
        with self.get_session() as session:
            vendor_count = session.scalar(select(func.count()).select_from(VendorRecord))
            favorite_count = session.scalar(
                select(func.count())
                .select_from(VendorRecord)
                .where(VendorRecord.is_favorite.is_(True))
            )
        return {
            "vendors": vendor_count,
            "favorites": favorite_count,
            "revision": self.get_revision(),
            "database_path": str(self.db_path),
        }

    def close(self) -> None:
        """Close database connection."""
        self.engine.dispose()
        logger.debug("Database connection closed")

    # =========================================================================
    # Helpers
    # =========================================================================

    def _set_flag(self, column: str, vendor_ids: Set[str]) -> None:
        with self.get_session() as session:
            for record in session.scalars(select(VendorRecord)):
                setattr(record, column, record.id in vendor_ids)
            session.commit()
        self._changed()

    def _changed(self) -> None:
        with self.get_session() as session:
            raw = self._get_setting(session, REVISION_KEY)
            revision = (int(raw) if raw is not None else 0) + 1
            self._set_setting(session, REVISION_KEY, str(revision))
            session.commit()

        if self.change_bus is not None:
            self.change_bus.publish()

    @staticmethod
    def _require(session: Session, vendor_id: str) -> VendorRecord:
        record = session.get(VendorRecord, vendor_id)
        if record is None:
            raise VendorNotFoundError(vendor_id)
        return record

    @staticmethod
    def _get_setting(session: Session, key: str) -> Optional[str]:
        setting = session.get(AppSetting, key)
        return setting.value if setting else None

    @staticmethod
    def _set_setting(session: Session, key: str, value: str) -> None:
        setting = session.get(AppSetting, key)
        if setting is None:
            session.add(AppSetting(key=key, value=value))
        else:
            setting.value = value
