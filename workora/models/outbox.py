from sqlalchemy import Column, DateTime, Integer, String, Text
from sqlalchemy.sql import func

from ..database import Base


class OutboxMessage(Base):
    """
    A message published to the notification relay.

    Lifecycle: pending -> processing -> sent | failed. A row is claimed
    (processing) before delivery is attempted, so it is delivered at most once.
    """
    __tablename__ = "outbox_messages"

    id = Column(Integer, primary_key=True, index=True)
    topic = Column(String(100), nullable=False, index=True)
    payload = Column(Text, nullable=False)  # JSON document
    status = Column(String(20), nullable=False, default="pending", index=True)
    error = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    processed_at = Column(DateTime(timezone=True), nullable=True)

    def __repr__(self) -> str:
        return f"<OutboxMessage(id={self.id}, topic={self.topic}, status={self.status})>"
