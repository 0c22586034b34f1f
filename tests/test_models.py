"""Tests for model helpers."""

import pytest

from models import Person, SpouseEdge, event_node_size, leading_year, person_node_size


@pytest.mark.parametrize(
    "value, expected",
    [("1954-11-25", 1954), ("1954", 1954), (" 812", 812), ("abt. 1900", None), ("", None), (None, None)],
)
def test_leading_year(value, expected):
    assert leading_year(value) == expected


class TestPerson:
    def test_age_of_living_person(self):
        assert Person(id="p", name="P", birth="1990-05-01").age(2024) == 34

    def test_age_at_death(self):
        person = Person(id="p", name="P", birth="1900", death="1975-02-01", deceased=True)
        assert person.age(2024) == 75

    def test_age_unknown_without_readable_dates(self):
        assert Person(id="p", name="P").age(2024) is None
        assert Person(id="p", name="P", birth="1900", deceased=True).age(2024) is None

    def test_tooltip(self):
        person = Person(id="p", name="Ada", birth="1815-12-10", death="1852-11-27", deceased=True, memo="Analyst")
        assert person.tooltip(2024) == (
            "Name: Ada\nBirth: 1815-12-10 (died at 37)\nDeath: 1852-11-27\nMemo: Analyst"
        )

    def test_label_falls_back(self):
        assert Person(id="p", name="").label() == "Unknown"


def test_spouse_other():
    edge = SpouseEdge(person1="a", person2="b")
    assert edge.other("a") == "b"
    assert edge.other("b") == "a"
    assert edge.other("c") is None


class TestNodeSize:
    def test_person_width_is_clamped(self):
        assert person_node_size("Al") == (100.0, 30.0)
        assert person_node_size("Bartholomew") == (154.0, 30.0)
        assert person_node_size("x" * 40) == (250.0, 30.0)

    def test_event_width(self):
        assert event_node_size("War") == (120.0, 30.0)
        assert event_node_size("Graduation day") == (202.0, 30.0)
        assert event_node_size("") == event_node_size("New event")
