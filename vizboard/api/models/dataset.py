# vizboard/api/models/dataset.py
from sqlalchemy import (
    Column,
    String,
    Integer,
    BigInteger,
    DateTime,
    JSON,
    func,
)
from sqlalchemy.orm import relationship
import uuid
from vizboard.api.dependencies.database import Base


class Dataset(Base):
    """Dataset model; rows are stored inline as a JSON array of objects"""

    __tablename__ = "datasets"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    dataset_name = Column(String(100), unique=True, nullable=False, index=True)
    json_data = Column(JSON, nullable=False, default=list)
    headers = Column(JSON, nullable=False, default=list)
    row_count = Column(Integer, nullable=False, default=0)
    column_count = Column(Integer, nullable=False, default=0)
    file_name = Column(String(255), nullable=False, default="")
    file_size = Column(BigInteger, nullable=False, default=0)
    mime_type = Column(String(100), nullable=False, default="application/json")
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime, server_default=func.now(), onupdate=func.now(), nullable=False
    )

    # Relationships
    dashboards = relationship(
        "Dashboard", back_populates="dataset", cascade="all, delete-orphan"
    )

    def __repr__(self):
        return f"<Dataset {self.dataset_name}>"

    def to_dict(self, include_data: bool = False):
        """Convert to dictionary"""
        data = {
            "id": self.id,
            "datasetName": self.dataset_name,
            "headers": list(self.headers or []),
            "rowCount": self.row_count,
            "columnCount": self.column_count,
            "fileName": self.file_name,
            "fileSize": self.file_size,
            "mimeType": self.mime_type,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }
        if include_data:
            data["jsonData"] = self.json_data or []
        return data
