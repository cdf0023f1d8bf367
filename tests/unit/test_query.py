"""Unit tests for the Query Accumulator."""
import pytest

from servicebot.services.events import EventCategory
from servicebot.services.query import acknowledgment, set_query_option, set_value_for_query
from servicebot.services.session import Session


class TestSetValueForQuery:
    @pytest.mark.parametrize("category,field_name", [
        (EventCategory.TEXT, "prompt"),
        (EventCategory.IMAGE, "image"),
    ])
    def test_writes_matching_field(self, registry, category, field_name):
        session = Session(service=3)

        written = set_value_for_query(session, registry.get(3), category, "value")

        assert written == field_name
        assert session.query == {field_name: "value"}

    def test_no_matching_field(self, registry):
        session = Session(service=3)
        assert set_value_for_query(session, registry.get(3), EventCategory.AUDIO, "u") is None
        assert session.query == {}

    def test_video_has_no_modality(self, registry):
        session = Session(service=4)
        assert set_value_for_query(session, registry.get(4), EventCategory.VIDEO, "u") is None

    @pytest.mark.parametrize("service_id", [0, 1, 2])
    def test_non_request_services_never_accumulate(self, registry, service_id):
        session = Session(service=service_id)
        assert set_value_for_query(session, registry.get(service_id), EventCategory.TEXT, "hi") is None
        assert session.query == {}

    def test_later_value_overwrites(self, registry):
        session = Session(service=4)
        set_value_for_query(session, registry.get(4), EventCategory.TEXT, "first")
        set_value_for_query(session, registry.get(4), EventCategory.TEXT, "second")
        assert session.query == {"text": "second"}


class TestSetQueryOption:
    def test_writes_any_field(self):
        session = Session(service=4, query={"text": "q"})
        set_query_option(session, "undeclared", "3")
        assert session.query == {"text": "q", "undeclared": "3"}


def test_acknowledgment():
    assert acknowledgment("image") == 'image set. Send more inputs or "ok" to run.'
