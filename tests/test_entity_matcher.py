"""Tests for tiered entity matching."""

from medibook.conversation.entity_matcher import match_entity
from medibook.schemas.directory_schema import Department, Doctor


def _departments(*names):
    return [Department(id=f"d{i}", clinic_id="c", name=n) for i, n in enumerate(names)]


def _doctors(*names):
    return [Doctor(id=f"doc{i}", clinic_id="c", department_id="d", name=n) for i, n in enumerate(names)]


class TestMatchEntity:
    def setup_method(self):
        self.departments = _departments("Cardiology", "Pediatrics")
        self.doctors = _doctors("Sarah Chen", "Robert Kim")

    def test_exact_case_insensitive(self):
        assert match_entity("CARDIOLOGY", self.departments).name == "Cardiology"

    def test_utterance_contained_in_name(self):
        assert match_entity("cardio", self.departments).name == "Cardiology"

    def test_name_contained_in_utterance(self):
        assert match_entity("the pediatrics department please", self.departments).name == "Pediatrics"

    def test_shared_word(self):
        assert match_entity("dr chen", self.doctors).name == "Sarah Chen"

    def test_first_name(self):
        assert match_entity("robert", self.doctors).name == "Robert Kim"

    def test_short_words_ignored(self):
        assert match_entity("dr", self.doctors) is None

    def test_no_match(self):
        assert match_entity("orthopedics", self.departments) is None

    def test_empty_text(self):
        assert match_entity("", self.departments) is None

    def test_first_entity_wins_within_tier(self):
        entities = _departments("Heart Care", "Heart Surgery")
        assert match_entity("heart", entities).name == "Heart Care"

    def test_earlier_tier_beats_list_order(self):
        entities = _departments("Kids Heart Clinic", "Heart")
        assert match_entity("heart", entities).name == "Heart"

    def test_custom_key(self):
        doctors = _doctors("Sarah Chen")
        assert match_entity("doc0", doctors, key=lambda d: d.id) is doctors[0]
