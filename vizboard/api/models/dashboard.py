# vizboard/api/models/dashboard.py
from sqlalchemy import Boolean, Column, String, Text, DateTime, ForeignKey, func
from sqlalchemy.orm import relationship
import uuid
from vizboard.api.dependencies.database import Base


class Dashboard(Base):
    """Saved chart configuration bound to one dataset"""

    __tablename__ = "dashboards"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    dashboard_name = Column(String(100), unique=True, nullable=False, index=True)
    dataset_name = Column(
        String(100),
        ForeignKey("datasets.dataset_name", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    json_format = Column(Text, nullable=False, default="[]")
    is_multiple = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime, server_default=func.now(), onupdate=func.now(), nullable=False
    )

    # Relationships
    dataset = relationship("Dataset", back_populates="dashboards")

    def __repr__(self):
        return f"<Dashboard {self.dashboard_name}>"

    def to_dict(self):
        """Convert to dictionary"""
        return {
            "id": self.id,
            "dashboardName": self.dashboard_name,
            "datasetName": self.dataset_name,
            "jsonFormat": self.json_format,
            "isMultiple": bool(self.is_multiple),
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }
