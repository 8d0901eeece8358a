"""Tests for fresh note rendering."""

from calnotes.calendar.models import Attendee, MeetingEvent
from calnotes.notes.template import (
    build_template,
    format_attendee,
    list_attendees,
    title_case,
)

from conftest import make_event


class TestFormatAttendee:
    """Test attendee line formatting."""

    def test_display_name(self):
        attendee = Attendee("jd@acme.com", "acme.com", True, display_name="jane DOE")
        assert format_attendee(attendee) == "[[Jane Doe]] jd@acme.com"

    def test_name_from_address(self):
        attendee = Attendee("jane.doe@acme.com", "acme.com", True)
        assert format_attendee(attendee) == "[[Jane Doe]] jane.doe@acme.com"

    def test_only_first_two_parts(self):
        attendee = Attendee("jane_m-doe@acme.com", "acme.com", True)
        assert format_attendee(attendee) == "[[Jane M]] jane_m-doe@acme.com"

    def test_single_part(self):
        attendee = Attendee("sales@acme.com", "acme.com", True)
        assert format_attendee(attendee) == "[[Sales]] sales@acme.com"

    def test_title_case(self):
        assert title_case("mARY  ann") == "Mary Ann"


class TestListAttendees:
    """Test which participants are listed."""

    def test_skips_self(self, resolver):
        meeting = MeetingEvent.from_api(make_event(), resolver)
        assert list_attendees(meeting) == ["[[Jane Doe]] jane.doe@acme.com"]

    def test_adds_external_organizer(self, resolver):
        event = make_event(attendees=["me@mycompany.com", "jane.doe@acme.com"], organizer="bob.lee@globex.com")
        meeting = MeetingEvent.from_api(event, resolver)
        assert list_attendees(meeting) == [
            "[[Jane Doe]] jane.doe@acme.com",
            "[[Bob Lee]] bob.lee@globex.com",
        ]

    def test_organizer_not_duplicated(self, resolver):
        event = make_event(attendees=["jane.doe@acme.com"], organizer="jane.doe@acme.com")
        meeting = MeetingEvent.from_api(event, resolver)
        assert list_attendees(meeting) == ["[[Jane Doe]] jane.doe@acme.com"]


class TestBuildTemplate:
    """Test the rendered document."""

    def test_render(self, resolver, tz):
        meeting = MeetingEvent.from_api(make_event(summary="Customer Call"), resolver)
        text = build_template(meeting, tz, ["Acme Corp"]).render()

        assert text == (
            "---\n"
            'start_date: "2024-01-15 14:00"\n'
            'end_date: "2024-01-15 15:00"\n'
            "tags:\n"
            "  - meeting\n"
            "---\n"
            "\n"
            "account:: [[Acme Corp]]\n"
            "\n"
            "oppy:: \n"
            "\n"
            "Attendees:: \n"
            "- [[Jane Doe]] jane.doe@acme.com\n"
            "\n"
            "# Customer Call"
        )

    def test_multiple_accounts(self, resolver, tz):
        meeting = MeetingEvent.from_api(make_event(), resolver)
        template = build_template(meeting, tz, ["Acme Corp", "Globex"])
        assert template.fields[0].render() == ["account:: [[Acme Corp]],[[Globex]]"]

    def test_dates_in_timezone(self, resolver, tz):
        event = make_event(start="2024-07-01T08:00:00Z", end="2024-07-01T09:30:00Z")
        meeting = MeetingEvent.from_api(event, resolver)
        template = build_template(meeting, tz)
        assert template.frontmatter_lines()[:2] == [
            'start_date: "2024-07-01 10:00"',
            'end_date: "2024-07-01 11:30"',
        ]

    def test_all_day_dates(self, resolver, tz):
        event = make_event(all_day=True, start="2024-03-01", end="2024-03-02")
        meeting = MeetingEvent.from_api(event, resolver)
        assert build_template(meeting, tz).frontmatter_lines()[0] == 'start_date: "2024-03-01"'

    def test_heading_uses_raw_summary(self, resolver, tz):
        meeting = MeetingEvent.from_api(make_event(summary="Acme: Kickoff"), resolver)
        assert build_template(meeting, tz).title == "Acme: Kickoff"

    def test_oppy_is_manual_and_blank(self, resolver, tz):
        meeting = MeetingEvent.from_api(make_event(), resolver)
        oppy = build_template(meeting, tz).fields[1]
        assert oppy.key == "oppy"
        assert oppy.manual
        assert oppy.value == ""
