"""Unit tests for check-in validation."""

from fitcheck.services.checkin.checkin_validator import CheckInValidator


class TestValidateKind:

    def test_known_kinds(self):
        for kind in ["WORKOUT", "REST", "REFLECTION"]:
            assert CheckInValidator.validate_kind(kind) == (True, None)

    def test_unknown_kind(self):
        is_valid, error = CheckInValidator.validate_kind("NAP")
        assert not is_valid
        assert "WORKOUT" in error

    def test_kind_is_case_sensitive(self):
        assert CheckInValidator.validate_kind("workout")[0] is False


class TestValidateDetails:

    def test_workout_requires_muscle_group(self):
        is_valid, error = CheckInValidator.validate_details("WORKOUT", {})
        assert not is_valid
        assert "Muscle group" in error

    def test_rest_without_muscle_group(self):
        assert CheckInValidator.validate_details("REST", {}) == (True, None)

    def test_unknown_muscle_group(self):
        is_valid, _ = CheckInValidator.validate_details("WORKOUT", {"muscleGroup": "NECK"})
        assert not is_valid

    def test_note_length_limit(self):
        assert CheckInValidator.validate_details("REST", {"note": "x" * 500})[0] is True
        assert CheckInValidator.validate_details("REST", {"note": "x" * 501})[0] is False

    def test_note_is_trimmed_before_length_check(self):
        assert CheckInValidator.validate_note("  " + "x" * 500 + "  ")[0] is True


class TestValidateVisibilityField:

    def test_fields(self):
        assert CheckInValidator.validate_visibility_field("note")[0] is True
        assert CheckInValidator.validate_visibility_field("photo")[0] is True
        assert CheckInValidator.validate_visibility_field("kind")[0] is False
