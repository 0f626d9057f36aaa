"""Tests for reply validation."""

import pytest

from lead_scoring.patterns import FieldKind, is_gibberish
from lead_scoring.response_validator import InvalidReason, ResponseValidator, ValidationOutcome


@pytest.fixture
def validator():
    return ResponseValidator()


@pytest.mark.parametrize("reply", ["", "   ", "\n\t", None])
def test_empty_reply(validator, reply):
    outcome = validator.validate(reply, FieldKind.LOCATION)
    assert not outcome.is_valid
    assert outcome.reason == InvalidReason.EMPTY


@pytest.mark.parametrize("reply", [
    "asdf", "qwerty123", "zzzzzzzz", "aeiou", "bcdfgh", "12345678901", "!!!???", "test user",
])
@pytest.mark.parametrize("field", list(FieldKind))
def test_gibberish_rejected_for_every_field(validator, reply, field):
    outcome = validator.validate(reply, field)
    assert outcome == ValidationOutcome.invalid(InvalidReason.GIBBERISH)


@pytest.mark.parametrize("word", ["bangalore", "apartment", "browsing", "investment"])
def test_known_long_words_are_not_gibberish(word):
    assert not is_gibberish(word)


def test_repeated_digits_are_not_gibberish():
    # Amounts such as 100000 are real answers
    assert not is_gibberish("100000")


class TestLocation:
    @pytest.mark.parametrize("reply", [
        "Pune", "Koramangala, Bangalore", "Baner Road", "near Hinjewadi", "Whitefield Bengaluru",
    ])
    def test_valid_locations(self, validator, reply):
        assert validator.validate(reply, FieldKind.LOCATION).is_valid

    @pytest.mark.parametrize("reply", ["no", "not sure", "idk", "123", "ab"])
    def test_non_answers(self, validator, reply):
        outcome = validator.validate(reply, FieldKind.LOCATION)
        assert outcome.reason == InvalidReason.VAGUE_LOCATION

    def test_unrecognised_place_is_vague(self, validator):
        outcome = validator.validate("old town", FieldKind.LOCATION)
        assert outcome.reason == InvalidReason.VAGUE_LOCATION

    def test_short_reply_is_too_short(self, validator):
        outcome = validator.validate("x1", FieldKind.LOCATION)
        assert outcome.reason == InvalidReason.TOO_SHORT


class TestPropertyType:
    @pytest.mark.parametrize("reply", [
        "2BHK flat", "looking for an apartment", "villa", "a plot of land", "office space",
    ])
    def test_valid(self, validator, reply):
        assert validator.validate(reply, FieldKind.PROPERTY_TYPE).is_valid

    def test_unclear(self, validator):
        outcome = validator.validate("something nice", FieldKind.PROPERTY_TYPE)
        assert outcome.reason == InvalidReason.UNCLEAR_PROPERTY_TYPE


class TestBudget:
    @pytest.mark.parametrize("reply", ["75L", "1.5 cr", "50-80 lakhs", "under 90 lakh", "around 2 crore"])
    def test_amounts(self, validator, reply):
        outcome = validator.validate(reply, FieldKind.BUDGET)
        assert outcome.is_valid
        assert not outcome.is_browsing

    @pytest.mark.parametrize("reply", ["just browsing", "Haven't decided", "browsing"])
    def test_browsing(self, validator, reply):
        outcome = validator.validate(reply, FieldKind.BUDGET)
        assert outcome.is_valid
        assert outcome.is_browsing
        assert outcome.to_dict() == {"isValid": True, "isBrowsing": True}

    def test_unclear(self, validator):
        outcome = validator.validate("not much", FieldKind.BUDGET)
        assert outcome.reason == InvalidReason.UNCLEAR_BUDGET


class TestTimeline:
    @pytest.mark.parametrize("reply", ["asap", "in 3 months", "no rush", "whenever it works"])
    def test_valid(self, validator, reply):
        assert validator.validate(reply, FieldKind.TIMELINE).is_valid

    def test_short_without_keyword(self, validator):
        outcome = validator.validate("hmm", FieldKind.TIMELINE)
        assert outcome.reason == InvalidReason.TOO_SHORT


@pytest.mark.parametrize("field", [FieldKind.ENGAGEMENT, FieldKind.FREE_FORM])
def test_free_form_fields_pass_through(validator, field):
    assert validator.validate("no", field).is_valid


def test_outcome_serialization():
    outcome = ValidationOutcome.invalid(InvalidReason.VAGUE_LOCATION)
    assert outcome.to_dict() == {"isValid": False, "reason": "vague-location"}
    assert ValidationOutcome.from_dict(outcome.to_dict()) == outcome
