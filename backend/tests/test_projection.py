"""Tests for the view projection — alias resolution, tallies, ordering, scope."""
from datetime import date, datetime, time, timedelta, timezone

from gatepass.models.gate_pass import GatePassRequest, RequestStatus
from gatepass.models.principal import Principal, Role
from gatepass.services import projection
from gatepass.services.projection import UNKNOWN, resolve_field, to_view

BASE = datetime(2025, 6, 1, 9, 0, tzinfo=timezone.utc)


def _record(request_id: str = "r-1", **columns) -> GatePassRequest:
    attributes = columns.pop("attributes", {})
    columns.setdefault("requester_id", "s-1")
    columns.setdefault("status", RequestStatus.pending)
    return GatePassRequest(request_id=request_id, attributes=attributes, **columns)


class TestResolveField:
    def test_canonical_wins_over_alias(self):
        fields = {"departure_date": "2025-06-01", "leaveDate": "2025-01-01"}
        assert resolve_field(fields, "departure_date") == "2025-06-01"

    def test_aliases_tried_in_order(self):
        fields = {"dateOfLeaving": "2025-06-02", "leaveDate": "2025-06-03"}
        assert resolve_field(fields, "departure_date") == "2025-06-02"
        assert resolve_field({"leaveDate": "2025-06-03"}, "departure_date") == "2025-06-03"

    def test_blank_counts_as_absent(self):
        fields = {"departure_date": "  ", "dateOfLeaving": "", "leaveDate": "2025-06-03"}
        assert resolve_field(fields, "departure_date") == "2025-06-03"

    def test_unknown_sentinel(self):
        assert resolve_field({}, "departure_date") == UNKNOWN
        assert resolve_field({"destination": ""}, "destination") == UNKNOWN


class TestToView:
    def test_legacy_alias_matches_canonical(self):
        """Alias-only and canonical-only records project the same value."""
        canonical = to_view(_record(departure_date=date(2025, 6, 1), return_date=date(2025, 6, 3)))
        legacy = to_view(_record(attributes={"leaveDate": "2025-06-01", "returnDate": "2025-06-03"}))
        assert canonical.departure_date == legacy.departure_date == "2025-06-01"
        assert canonical.return_date == legacy.return_date == "2025-06-03"

    def test_leave_date_only(self):
        """Departure date resolved from the legacy leaveDate key."""
        view = to_view(_record(attributes={"leaveDate": "2025-06-01"}))
        assert view.departure_date == "2025-06-01"

    def test_missing_fields_surface_unknown(self):
        view = to_view(_record(attributes={"unrelated": 1}))
        assert view.departure_date == UNKNOWN
        assert view.return_time == UNKNOWN
        assert view.reason == UNKNOWN
        assert view.destination == UNKNOWN
        assert view.requester_name == UNKNOWN
        assert view.requester_context == {
            "enrollment_number": UNKNOWN, "course": UNKNOWN,
            "hostel_block": UNKNOWN, "room_number": UNKNOWN,
        }
        assert view.notes is None
        assert view.created_at is None

    def test_malformed_values_do_not_raise(self):
        view = to_view(_record(attributes={
            "leaveDate": "first of June",
            "timeOfLeaving": "morning",
            "approvedAt": "not a timestamp",
            "requester_context": "garbage",
        }, status=RequestStatus.approved))
        assert view.departure_date == "first of June"
        assert view.departure_time == "morning"
        assert view.decided_at is None
        assert view.decision_by == UNKNOWN

    def test_times_and_legacy_names(self):
        view = to_view(_record(
            departure_time=time(9, 5),
            attributes={
                "expectedReturnTime": "18:30:00",
                "studentName": "Asha",
                "parentContactNumber": "9876543210",
                "additionalNotes": "Will travel by bus",
            },
        ))
        assert view.departure_time == "09:05"
        assert view.return_time == "18:30"
        assert view.requester_name == "Asha"
        assert view.parent_contact == "9876543210"
        assert view.notes == "Will travel by bus"

    def test_legacy_decision_metadata(self):
        approved = to_view(_record(status=RequestStatus.approved, attributes={
            "approvedAt": "2025-06-01T10:00:00.000Z", "approvedBy": "w-9",
        }))
        assert approved.decided_at == datetime(2025, 6, 1, 10, 0, tzinfo=timezone.utc)
        assert approved.decision_by == "w-9"
        assert approved.rejection_reason is None

        rejected = to_view(_record(status=RequestStatus.rejected, attributes={
            "rejectedAt": "2025-06-01T10:00:00+00:00",
        }))
        assert rejected.decided_at is not None
        assert rejected.rejection_reason == UNKNOWN

    def test_client_written_rejection_and_contact_keys(self):
        legacy = to_view(_record(status=RequestStatus.rejected, attributes={
            "rejectionReason": "Exams next week",
            "parentContact": "9876543210",
        }))
        canonical = to_view(_record(
            status=RequestStatus.rejected,
            rejection_reason="Exams next week",
            parent_contact="9876543210",
        ))
        assert legacy.rejection_reason == canonical.rejection_reason == "Exams next week"
        assert legacy.parent_contact == canonical.parent_contact == "9876543210"

    def test_rejection_reason_prefers_newer_key(self):
        view = to_view(_record(status=RequestStatus.rejected, attributes={
            "rejectionReason": "Exams next week", "rejectReason": "older",
        }))
        assert view.rejection_reason == "Exams next week"

    def test_flat_requester_context(self):
        view = to_view(_record(attributes={
            "enrollmentNumber": "ENR1", "course": "B.Tech", "hostelBlock": "A", "roomNumber": "101",
        }))
        assert view.requester_context == {
            "enrollment_number": "ENR1", "course": "B.Tech", "hostel_block": "A", "room_number": "101",
        }

    def test_snapshot_context_wins_over_flat_keys(self):
        view = to_view(_record(
            requester_context={"hostel_block": "B"},
            attributes={"hostelBlock": "A", "roomNumber": "101"},
        ))
        assert view.requester_context["hostel_block"] == "B"
        assert view.requester_context["room_number"] == "101"

    def test_created_at_alias(self):
        view = to_view(_record(attributes={"createdAt": "2025-06-01T09:00:00Z"}))
        assert view.created_at == BASE

    def test_pending_never_carries_decision_fields(self):
        view = to_view(_record(attributes={"approvedBy": "w-9", "rejectionReason": "stale"}))
        assert view.decision_by is None
        assert view.decided_at is None
        assert view.rejection_reason is None

    def test_document_store_timestamp(self):
        seconds = int(BASE.timestamp())
        record = _record(status=RequestStatus.approved, attributes={
            "decided_at": {"seconds": seconds, "nanoseconds": 0},
        })
        assert to_view(record).decided_at == BASE

    def test_naive_timestamps_become_utc(self):
        view = to_view(_record(created_at=datetime(2025, 6, 1, 9, 0)))
        assert view.created_at == BASE


def _views(*specs):
    return [
        to_view(_record(f"r-{i}", requester_id=requester, status=status, created_at=created))
        for i, (requester, status, created) in enumerate(specs)
    ]


class TestAggregates:
    def test_tally(self):
        views = _views(
            ("s-1", RequestStatus.pending, BASE),
            ("s-1", RequestStatus.approved, BASE),
            ("s-2", RequestStatus.approved, BASE),
            ("s-2", RequestStatus.rejected, BASE),
        )
        counts = projection.tally(views)
        assert (counts.pending, counts.approved, counts.rejected, counts.total) == (1, 2, 1, 4)

    def test_tally_empty(self):
        counts = projection.tally([])
        assert counts.total == 0

    def test_order_by_recency(self):
        views = _views(
            ("s-1", RequestStatus.pending, BASE),
            ("s-1", RequestStatus.pending, None),
            ("s-1", RequestStatus.pending, BASE + timedelta(days=2)),
            ("s-1", RequestStatus.pending, BASE + timedelta(days=1)),
        )
        ordered = [v.request_id for v in projection.order_by_recency(views)]
        assert ordered == ["r-2", "r-3", "r-0", "r-1"]

    def test_recent_defaults_to_five(self):
        views = _views(*[("s-1", RequestStatus.pending, BASE + timedelta(hours=i)) for i in range(8)])
        latest = projection.recent(views)
        assert [v.request_id for v in latest] == ["r-7", "r-6", "r-5", "r-4", "r-3"]
        assert len(projection.recent(views, limit=2)) == 2


class TestScope:
    def _principal(self, role, principal_id):
        return Principal(principal_id=principal_id, role=role, display_name="X",
                         email=f"{principal_id}@campus.test", profile_complete=True)

    def test_student_sees_own_only(self):
        views = _views(
            ("s-1", RequestStatus.pending, BASE),
            ("s-2", RequestStatus.pending, BASE),
            ("s-1", RequestStatus.approved, BASE),
        )
        scoped = projection.scope_for(self._principal(Role.student, "s-1"), views)
        assert {v.request_id for v in scoped} == {"r-0", "r-2"}

    def test_warden_sees_all_with_status_filter(self):
        views = _views(
            ("s-1", RequestStatus.pending, BASE),
            ("s-2", RequestStatus.pending, BASE),
            ("s-1", RequestStatus.approved, BASE),
        )
        warden = self._principal(Role.warden, "w-1")
        assert len(projection.scope_for(warden, views)) == 3
        pending = projection.scope_for(warden, views, RequestStatus.pending)
        assert {v.request_id for v in pending} == {"r-0", "r-1"}

    def test_nobody_sees_nothing(self):
        assert projection.scope_for(None, _views(("s-1", RequestStatus.pending, BASE))) == []
