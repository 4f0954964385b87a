"""SQLAlchemy database models for the local vendor configuration."""

import json
from datetime import datetime
from typing import Dict

from sqlalchemy import Boolean, DateTime, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from ..models import Vendor


class Base(DeclarativeBase):
    """Base class for all database models."""

    pass


class VendorRecord(Base):
    """Represents one vendor profile stored on this device."""

    __tablename__ = "vendors"

    id: Mapped[str] = mapped_column(String(255), primary_key=True)
    name: Mapped[str] = mapped_column(String(500), nullable=False, default="")
    env_json: Mapped[str] = mapped_column(
        Text, nullable=False, default="{}"
    )  # JSON object of env key -> value

    # Display order (insertion order)
    position: Mapped[int] = mapped_column(Integer, nullable=False, index=True)

    # Markers
    is_favorite: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_preset: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    @property
    def env(self) -> Dict[str, str]:
        return dict(json.loads(self.env_json or "{}"))

    @env.setter
    def env(self, value: Dict[str, str]) -> None:
        self.env_json = json.dumps(value, sort_keys=True)

    def to_vendor(self) -> Vendor:
        """Convert to the domain model."""
        return Vendor(id=self.id, name=self.name, env=self.env)

    def __repr__(self) -> str:
        """String representation of VendorRecord."""
        return f"<VendorRecord(id='{self.id}', name='{self.name}')>"


class AppSetting(Base):
    """Key/value application setting (current vendor, sync manifest, revision)."""

    __tablename__ = "app_settings"

    key: Mapped[str] = mapped_column(String(100), primary_key=True)
    value: Mapped[str] = mapped_column(Text, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    def __repr__(self) -> str:
        """String representation of AppSetting."""
        return f"<AppSetting(key='{self.key}')>"
