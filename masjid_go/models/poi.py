from sqlalchemy import String, Float, Boolean, Index
from sqlalchemy.orm import Mapped, mapped_column
from masjid_go.database import Base


class PointOfInterest(Base):
    """Directory entry for a masjid.

    `geo_cell` is the geohash of the coordinates at the index precision and is
    the bucket key for proximity lookups. `region_key` is `<district_code>#<id>`
    so districts can be listed with a prefix match inside a state.
    """
    __tablename__ = "points_of_interest"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String, nullable=False)
    name_normalized: Mapped[str] = mapped_column(String, nullable=False, index=True)
    address: Mapped[str | None] = mapped_column(String, nullable=True)
    lat: Mapped[float] = mapped_column(Float, nullable=False)
    lng: Mapped[float] = mapped_column(Float, nullable=False)
    geo_cell: Mapped[str] = mapped_column(String(12), nullable=False, index=True)
    state_code: Mapped[str] = mapped_column(String(16), nullable=False)
    state_name: Mapped[str | None] = mapped_column(String, nullable=True)
    district_code: Mapped[str] = mapped_column(String(16), nullable=False)
    district_name: Mapped[str | None] = mapped_column(String, nullable=True)
    region_key: Mapped[str] = mapped_column(String(96), nullable=False)
    checkin_radius_m: Mapped[float] = mapped_column(Float, default=100.0, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    is_verified: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    __table_args__ = (
        Index("ix_points_of_interest_state_region", "state_code", "region_key"),
    )
