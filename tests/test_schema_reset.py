"""
Tests — Per-test database reset.

Covers:
    - A coordinator with contributors (RESTRICT self-FK) does not survive into the next test
    - Foreign key enforcement is still on after the reset
"""

import pytest
from sqlalchemy import func, select, text
from sqlalchemy.exc import IntegrityError

from runboard.models import db as _db
from runboard.models.auth import User
from runboard.models.submission import Submission


class TestReset:
    # Both tests build the same users; the second one fails on the unique
    # email if the first one's rows were not dropped.
    @pytest.mark.parametrize("attempt", [1, 2])
    def test_users_with_runs_dropped_between_tests(self, attempt, coordinator, contributor, make_submission):
        make_submission(contributor)
        assert _db.session.execute(select(func.count(User.id))).scalar_one() == 2
        assert _db.session.execute(select(func.count(Submission.id))).scalar_one() == 1

    def test_foreign_keys_enforced(self):
        assert _db.session.execute(text("PRAGMA foreign_keys")).scalar_one() == 1

    def test_coordinator_with_contributors_cannot_be_deleted(self, coordinator, contributor):
        with pytest.raises(IntegrityError):
            _db.session.execute(text("DELETE FROM users WHERE id = :id"), {"id": coordinator.id})
            _db.session.commit()
        _db.session.rollback()
