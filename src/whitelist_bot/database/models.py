"""Схема базы данных (SQLAlchemy)."""

from datetime import datetime

from sqlalchemy import (
    BigInteger,
    Boolean,
    Column,
    Date,
    DateTime,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    text,
)
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class WhitelistedChannel(Base):
    __tablename__ = "whitelisted_channels"
    __table_args__ = (UniqueConstraint("chat_id", "channel_id", name="uq_whitelist_chat_channel"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    chat_id = Column(BigInteger, nullable=False)
    channel_id = Column(BigInteger, nullable=False)
    added_by = Column(BigInteger, nullable=False)
    added_at = Column(DateTime, nullable=False, default=datetime.now)
    description = Column(Text, default="")


class BlockedMessageRow(Base):
    __tablename__ = "blocked_messages"
    __table_args__ = (Index("idx_blocked_messages_chat", "chat_id"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    chat_id = Column(BigInteger, nullable=False)
    channel_id = Column(BigInteger, nullable=False)
    message_id = Column(BigInteger, nullable=False)
    blocked_at = Column(DateTime, nullable=False, default=datetime.now)
    message_text = Column(Text)


class GroupSettingsRow(Base):
    __tablename__ = "group_settings"

    chat_id = Column(BigInteger, primary_key=True)
    admin_only = Column(Boolean, nullable=False, default=True)
    enabled = Column(Boolean, nullable=False, default=True)


class ChannelApplicationRow(Base):
    __tablename__ = "channel_applications"
    __table_args__ = (
        # Не больше одной заявки на рассмотрении для пары (группа, канал)
        Index(
            "uq_channel_applications_pending",
            "chat_id",
            "channel_id",
            unique=True,
            sqlite_where=text("status = 'pending'"),
        ),
        Index("idx_channel_applications_pair", "chat_id", "channel_id", "applied_at"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    chat_id = Column(BigInteger, nullable=False)
    channel_id = Column(BigInteger, nullable=False)
    user_id = Column(BigInteger, nullable=False, default=0)
    reason = Column(Text, default="")
    channel_title = Column(String, default="")
    applied_at = Column(DateTime, nullable=False, default=datetime.now)
    status = Column(String, nullable=False, default="pending")
    verified_channel = Column(Boolean, nullable=False, default=False)
    decided_by = Column(BigInteger, nullable=True)
    last_prompt_date = Column(Date, nullable=True)


class ChannelDailyPrompt(Base):
    __tablename__ = "channel_daily_prompts"
    __table_args__ = (
        UniqueConstraint(
            "chat_id", "channel_id", "prompt_type", "prompt_date", name="uq_daily_prompt"
        ),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    chat_id = Column(BigInteger, nullable=False)
    channel_id = Column(BigInteger, nullable=False)
    prompt_type = Column(String, nullable=False)
    prompt_date = Column(Date, nullable=False)


class UserStateRow(Base):
    __tablename__ = "user_states"

    user_id = Column(BigInteger, primary_key=True)
    state = Column(Text)
    updated_at = Column(DateTime, default=datetime.now)
