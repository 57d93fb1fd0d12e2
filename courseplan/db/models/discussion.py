"""
Discussion topic subscriptions.

A user subscribes to a topic at most once; the (topic_id, user_id) pair is
protected by a unique constraint so concurrent subscribers race on the index.
"""

from __future__ import annotations

from sqlalchemy import ForeignKey, Integer, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base

SUBSCRIPTION_UNIQUE_CONSTRAINT = "uq_topic_subscriptions_topic_user"


class Topic(Base):
    __tablename__ = "discussion_topics"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    course_id: Mapped[int] = mapped_column(ForeignKey("courses.id", ondelete="CASCADE"), nullable=False)
    title: Mapped[str | None] = mapped_column(Text)

    subscriptions: Mapped[list[TopicSubscription]] = relationship(
        back_populates="topic", cascade="all, delete-orphan"
    )


class TopicSubscription(Base):
    __tablename__ = "topic_subscriptions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    topic_id: Mapped[int] = mapped_column(
        ForeignKey("discussion_topics.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False)

    topic: Mapped[Topic] = relationship(back_populates="subscriptions")

    __table_args__ = (
        UniqueConstraint("topic_id", "user_id", name=SUBSCRIPTION_UNIQUE_CONSTRAINT),
    )
