"""
Submission domain models — one reported test run and its result tree.

Models:
    - Submission:  root aggregate; owns sections; carries the derived status
    - Section:     ordered child of a submission; owns subsections
    - Subsection:  ordered leaf

Architecture ref:
    Submission ──1:N──▶ Section ──1:N──▶ Subsection

Derived status:
    ``Submission.status`` is read-only. The only write path is
    ``replace_sections()``, which rebuilds the tree and recomputes the
    status. A mapper hook recomputes it again right before every INSERT and
    UPDATE, so a flushed row can never carry a stale or client-supplied value.

Snapshots:
    ``team`` and ``manager_id`` are copied from the contributor at creation
    time and are NOT live references. Renaming a team or reassigning a
    contributor later does not move historical submissions.
"""

from datetime import datetime, timezone

from sqlalchemy import event

from runboard.core.outcome import Outcome
from runboard.models import db
from runboard.services.aggregation import compute_status


class Submission(db.Model):
    __tablename__ = "submissions"

    id = db.Column(db.Integer, primary_key=True)
    team = db.Column(db.String(100), nullable=False, comment="Team label frozen at creation")
    lead_id = db.Column(
        db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False,
    )
    manager_id = db.Column(
        db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False,
        comment="Snapshot of the lead's coordinator at creation time",
    )
    test_name = db.Column(db.String(200), nullable=False)
    _status = db.Column(
        "status", db.String(20), nullable=False,
        comment="passed | skipped | failed | errored — derived, never client-supplied",
    )
    timestamp = db.Column(
        db.DateTime, nullable=False, default=datetime.now,
        comment="When the run happened (server-local wall clock)",
    )
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = db.Column(
        db.DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        db.Index("ix_submissions_lead_timestamp", "lead_id", "timestamp"),
        db.Index("ix_submissions_manager_timestamp", "manager_id", "timestamp"),
        db.Index("ix_submissions_team_timestamp", "team", "timestamp"),
        db.Index("ix_submissions_manager_team_timestamp", "manager_id", "team", "timestamp"),
    )

    sections = db.relationship(
        "Section",
        back_populates="submission",
        order_by="Section.position",
        cascade="all, delete-orphan",
        lazy="selectin",
    )
    lead = db.relationship("User", foreign_keys=[lead_id])

    @property
    def status(self) -> Outcome:
        return Outcome.parse(self._status, field="status")

    def replace_sections(self, section_inputs) -> None:
        """Replace the whole section tree and recompute the status.

        ``section_inputs`` is a non-empty sequence of objects exposing
        ``name``, ``result`` and ``subsections`` (each with ``name`` and
        ``result``), e.g. ``SectionInput`` from the validation module.
        """
        sections = []
        for s_pos, s in enumerate(section_inputs):
            section = Section(
                position=s_pos,
                name=s.name,
                result=Outcome.parse(s.result).value,
                subsections=[
                    Subsection(position=sub_pos, name=sub.name, result=Outcome.parse(sub.result).value)
                    for sub_pos, sub in enumerate(s.subsections)
                ],
            )
            sections.append(section)
        self._status = compute_status(sections).value
        self.sections = sections

    def refresh_status(self) -> None:
        self._status = compute_status(self.sections).value

    def to_dict(self):
        d = {
            "id": self.id,
            "team": self.team,
            "lead_id": self.lead_id,
            "manager_id": self.manager_id,
            "test_name": self.test_name,
            "status": self._status,
            "sections": [s.to_dict() for s in self.sections],
            "timestamp": self.timestamp.isoformat(timespec="milliseconds") if self.timestamp else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
        if self.lead is not None:
            d["lead"] = self.lead.to_brief()
        return d


class Section(db.Model):
    __tablename__ = "submission_sections"

    id = db.Column(db.Integer, primary_key=True)
    submission_id = db.Column(
        db.Integer, db.ForeignKey("submissions.id", ondelete="CASCADE"), nullable=False,
        index=True,
    )
    position = db.Column(db.Integer, nullable=False, default=0)
    name = db.Column(db.String(200), nullable=False)
    result = db.Column(db.String(20), nullable=False, comment="passed | skipped | failed | errored")

    submission = db.relationship("Submission", back_populates="sections")
    subsections = db.relationship(
        "Subsection",
        back_populates="section",
        order_by="Subsection.position",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "result": self.result,
            "subsections": [sub.to_dict() for sub in self.subsections],
        }


class Subsection(db.Model):
    __tablename__ = "submission_subsections"

    id = db.Column(db.Integer, primary_key=True)
    section_id = db.Column(
        db.Integer, db.ForeignKey("submission_sections.id", ondelete="CASCADE"), nullable=False,
        index=True,
    )
    position = db.Column(db.Integer, nullable=False, default=0)
    name = db.Column(db.String(200), nullable=False)
    result = db.Column(db.String(20), nullable=False, comment="passed | skipped | failed | errored")

    section = db.relationship("Section", back_populates="subsections")

    def to_dict(self):
        return {"id": self.id, "name": self.name, "result": self.result}


@event.listens_for(Submission, "before_insert")
@event.listens_for(Submission, "before_update")
def _recompute_status(mapper, connection, target):
    target.refresh_status()
