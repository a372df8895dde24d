"""
AI Run model for tracking LLM API calls.
"""
from sqlalchemy import Column, Integer, String, DateTime, Float, Text, Index
from sqlalchemy.sql import func
from app.db.base import Base


class AiRun(Base):
    __tablename__ = "ai_runs"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String, nullable=True, index=True)  # anonymous interview sessions have none
    feature = Column(String, nullable=False, index=True)  # e.g., "interview_turn", "roadmap_plan"
    input_hash = Column(String, index=True)
    prompt_version = Column(String, nullable=False)  # e.g., "v1"
    model = Column(String, nullable=False)
    tokens_in = Column(Integer, default=0)
    tokens_out = Column(Integer, default=0)
    cost_estimate = Column(Float, default=0.0)  # USD
    status = Column(String, nullable=False, default="pending")  # "pending", "completed", "failed"
    error_message = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    completed_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        Index('idx_ai_run_feature_created', 'feature', 'created_at'),
    )
