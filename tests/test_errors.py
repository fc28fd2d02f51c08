"""
Tests — Error response helper.

Covers:
    - Default HTTP status for every error code
    - Body shape with and without details
"""

import pytest

from runboard.utils.errors import E, api_error


def _codes():
    return sorted(v for k, v in vars(E).items() if not k.startswith("_"))


class TestApiError:
    def test_codes(self):
        assert _codes() == sorted([
            "ERR_VALIDATION_INVALID", "ERR_UNAUTHORIZED", "ERR_FORBIDDEN", "ERR_NOT_FOUND",
            "ERR_CONFLICT_DUPLICATE", "ERR_DATABASE", "ERR_INTERNAL",
        ])

    @pytest.mark.parametrize("code, status", [
        (E.VALIDATION_INVALID, 400),
        (E.UNAUTHORIZED, 401),
        (E.FORBIDDEN, 403),
        (E.NOT_FOUND, 404),
        (E.CONFLICT_DUPLICATE, 409),
        (E.DATABASE, 500),
        (E.INTERNAL, 500),
    ])
    def test_default_status(self, app, code, status):
        with app.test_request_context():
            _, http_status = api_error(code, "x")
        assert http_status == status

    def test_details_included_when_given(self, app):
        with app.test_request_context():
            res, _ = api_error(E.VALIDATION_INVALID, "Validation failed", details=[{"field": "sections"}])
            assert res.get_json() == {
                "error": "Validation failed",
                "code": "ERR_VALIDATION_INVALID",
                "details": [{"field": "sections"}],
            }
            res, _ = api_error(E.NOT_FOUND, "Submission not found")
            assert "details" not in res.get_json()
