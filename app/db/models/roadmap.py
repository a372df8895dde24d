"""
Roadmap, milestone, resource and quiz models.

Written once per roadmap-generation run; children are removed with the roadmap.
"""
from sqlalchemy import Column, Integer, String, ForeignKey, Text, DateTime, Boolean, Float, JSON, Index
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from app.db.base import Base


class ResourceType:
    YOUTUBE = "YOUTUBE"
    GITHUB = "GITHUB"
    INTERACTIVE = "INTERACTIVE"
    ARTICLE = "ARTICLE"
    DOCS = "DOCS"

    ALL = (YOUTUBE, GITHUB, INTERACTIVE, ARTICLE, DOCS)


class Roadmap(Base):
    __tablename__ = "roadmaps"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    title = Column(String, nullable=False)
    goal = Column(Text, nullable=False)
    duration_unit = Column(String, nullable=False, default="weeks")
    total_duration = Column(Integer, nullable=False, default=0)
    is_intensive = Column(Boolean, nullable=False, default=False)
    difficulty = Column(String, nullable=True)
    is_completed = Column(Boolean, nullable=False, default=False)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)

    milestones = relationship(
        "Milestone",
        back_populates="roadmap",
        cascade="all, delete-orphan",
        order_by="Milestone.order",
    )

    __table_args__ = (
        Index("idx_roadmap_user_created", "user_id", "created_at"),
    )

    def __repr__(self):
        return f"<Roadmap(id={self.id}, user_id={self.user_id}, title={self.title!r})>"


class Milestone(Base):
    __tablename__ = "milestones"

    id = Column(Integer, primary_key=True, index=True)
    roadmap_id = Column(Integer, ForeignKey("roadmaps.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=False, default="")
    order = Column(Integer, nullable=False)
    week = Column(Integer, nullable=False)  # start position (week/day/hour) from cumulative duration
    duration = Column(Integer, nullable=False, default=1)
    duration_unit = Column(String, nullable=False, default="weeks")
    estimated_hours = Column(Integer, nullable=True)
    difficulty = Column(String, nullable=True)

    roadmap = relationship("Roadmap", back_populates="milestones")
    resources = relationship("Resource", back_populates="milestone", cascade="all, delete-orphan", order_by="Resource.position")
    quizzes = relationship("Quiz", back_populates="milestone", cascade="all, delete-orphan", order_by="Quiz.position")


class Resource(Base):
    __tablename__ = "resources"

    id = Column(Integer, primary_key=True, index=True)
    milestone_id = Column(Integer, ForeignKey("milestones.id", ondelete="CASCADE"), nullable=False, index=True)
    position = Column(Integer, nullable=False, default=0)
    title = Column(String, nullable=False)
    url = Column(String, nullable=False)
    type = Column(String, nullable=False, default=ResourceType.DOCS)
    relevance_score = Column(Float, nullable=True)

    milestone = relationship("Milestone", back_populates="resources")


class Quiz(Base):
    __tablename__ = "quizzes"

    id = Column(Integer, primary_key=True, index=True)
    milestone_id = Column(Integer, ForeignKey("milestones.id", ondelete="CASCADE"), nullable=False, index=True)
    position = Column(Integer, nullable=False, default=0)
    question = Column(Text, nullable=False)
    options = Column(JSON, nullable=False)  # exactly four strings
    correct_index = Column(Integer, nullable=False)
    explanation = Column(Text, nullable=False, default="")
    difficulty = Column(String, nullable=True)

    milestone = relationship("Milestone", back_populates="quizzes")
