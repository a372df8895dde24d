"""
Interview session and turn-record models.
"""
from sqlalchemy import Column, Integer, String, ForeignKey, Text, DateTime, Boolean, JSON, Index
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from app.db.base import Base


class SessionStatus:
    NOT_STARTED = "NOT_STARTED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETE = "COMPLETE"


class Sender:
    USER = "USER"
    AI = "AI"


class InterviewSession(Base):
    """
    One simulated interview.

    question_index counts answered questions and only ever increases.
    is_over is set on the terminating turn; status becomes COMPLETE once the
    final report has been attached.
    """
    __tablename__ = "interview_sessions"

    id = Column(String, primary_key=True, index=True)
    user_id = Column(String, ForeignKey("users.id"), nullable=True, index=True)
    role = Column(String, nullable=False)
    category = Column(String, nullable=False, default="TECHNICAL")  # TECHNICAL / BEHAVIORAL / SYSTEM_DESIGN / MIXED
    seniority = Column(String, nullable=False, default="MID")  # JUNIOR / MID / SENIOR / STAFF
    focus_topics = Column(Text, nullable=True)

    question_index = Column(Integer, nullable=False, default=0)
    max_questions = Column(Integer, nullable=False, default=7)
    status = Column(String, nullable=False, default=SessionStatus.NOT_STARTED)
    is_over = Column(Boolean, nullable=False, default=False)
    topics_covered = Column(JSON, nullable=False, default=list)
    final_report = Column(JSON, nullable=True)

    version_id = Column(Integer, nullable=False, default=1)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
    completed_at = Column(DateTime(timezone=True), nullable=True)

    messages = relationship(
        "InterviewMessage",
        back_populates="session",
        cascade="all, delete-orphan",
        order_by="InterviewMessage.position",
    )

    # Optimistic locking: concurrent writers from different processes get StaleDataError
    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self):
        return f"<InterviewSession(id={self.id}, status={self.status}, question_index={self.question_index})>"


class InterviewMessage(Base):
    """Append-only turn record. Never updated after insert."""
    __tablename__ = "interview_messages"

    id = Column(Integer, primary_key=True, index=True)
    session_id = Column(String, ForeignKey("interview_sessions.id", ondelete="CASCADE"), nullable=False, index=True)
    position = Column(Integer, nullable=False)
    sender = Column(String, nullable=False)  # USER / AI
    content = Column(Text, nullable=False, default="")
    metrics = Column(JSON, nullable=True)  # score, feedback, better_answer, topics_covered, hint_used, question_index
    question_index = Column(Integer, nullable=False, default=1)
    is_hint = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    session = relationship("InterviewSession", back_populates="messages")

    __table_args__ = (
        Index("idx_session_position", "session_id", "position", unique=True),
    )

    @property
    def label(self) -> str:
        return "HINT" if self.is_hint else self.sender

    def as_history_line(self) -> str:
        return f"{self.label}: {self.content}"
