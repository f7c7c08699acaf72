from __future__ import annotations

import enum
from datetime import datetime, timezone

from .extensions import db
from .security import decrypt_assignment_recipient, encrypt_assignment_recipient


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class DrawStatus(str, enum.Enum):
    DRAFT = "draft"
    READY = "ready"
    # Reserved: nothing transitions a draw into this state.
    CLOSED = "closed"


class Draw(db.Model):
    __tablename__ = "draws"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(120), nullable=False)
    budget = db.Column(db.Numeric(10, 2, asdecimal=False), nullable=True)

    # Bearer capabilities: organizer code manages, participant code reveals.
    organizer_code = db.Column(db.String(64), unique=True, nullable=False, index=True)
    participant_code = db.Column(db.String(64), unique=True, nullable=False, index=True)

    status = db.Column(
        db.Enum(
            DrawStatus,
            native_enum=False,
            length=16,
            values_callable=lambda e: [m.value for m in e],
        ),
        default=DrawStatus.DRAFT,
        nullable=False,
    )

    created_at = db.Column(db.DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = db.Column(db.DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    participants = db.relationship(
        "Participant",
        back_populates="draw",
        order_by="Participant.position",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @property
    def is_ready(self) -> bool:
        return self.status == DrawStatus.READY

    def find_participant(self, participant_id: int) -> Participant | None:
        for p in self.participants:
            if p.id == participant_id:
                return p
        return None

    def touch(self) -> None:
        self.updated_at = utcnow()


class Participant(db.Model):
    __tablename__ = "participants"
    # Ids are never reused after a participant list is replaced.
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    draw_id = db.Column(db.Integer, db.ForeignKey("draws.id", ondelete="CASCADE"), nullable=False, index=True)
    position = db.Column(db.Integer, nullable=False, default=0)

    name = db.Column(db.String(64), nullable=False)
    # Opaque reference returned by the upload endpoint (or any URL).
    photo_url = db.Column(db.String(512), nullable=True)

    # Encrypted receiver id (Fernet token string); NULL unless the draw is ready.
    assigned_ciphertext = db.Column(db.Text, nullable=True)
    has_drawn = db.Column(db.Boolean, default=False, nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = db.Column(db.DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    draw = db.relationship("Draw", back_populates="participants")

    @property
    def assigned_participant_id(self) -> int | None:
        if not self.assigned_ciphertext:
            return None
        return decrypt_assignment_recipient(self.assigned_ciphertext)

    @assigned_participant_id.setter
    def assigned_participant_id(self, receiver_id: int | None) -> None:
        if receiver_id is None:
            self.assigned_ciphertext = None
        else:
            self.assigned_ciphertext = encrypt_assignment_recipient(receiver_id)

    def clear_assignment(self) -> None:
        self.assigned_participant_id = None
        self.has_drawn = False
