from sqlalchemy import Integer, ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from banner_service.models.base import Base

class BannerPlacement(Base):
    __tablename__ = "banner_placement"
    __table_args__ = (UniqueConstraint("banner_id", "placement_id", name="uq_banner_placement"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    banner_id: Mapped[int] = mapped_column(ForeignKey("banners.id", ondelete="CASCADE"))
    placement_id: Mapped[int] = mapped_column(ForeignKey("placements.id", ondelete="CASCADE"), index=True)
    # Rotation order for the sequential strategy; ties broken by banner id
    position: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
