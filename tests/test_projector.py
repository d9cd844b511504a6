"""
Projector tests: filters, counters, workload and heat tiers over plain snapshots.
"""

from datetime import date, datetime, timedelta

import pytest

from civicpulse.models import Grievance, HeatTier, User, ZoneDistribution
from civicpulse.projector import (
    FilterCriteria, category_heat, citizens_with_report_counts, filter_grievances, heat_tier,
    is_duplicate, matches_search, officer_workload, pending_verification, priority_issues,
    rank_zones, recent, status_counts, todays_activity, workload_by_department, zone_heat,
    zone_summary,
)

NOW = datetime(2026, 3, 10, 12, 0)


def g(id, **fields):
    return Grievance(id=id, **fields)


def officer(id, department=None, name=None):
    return User.model_validate({"id": id, "name": name or f"Officer {id}", "role": "OFFICER",
                                "department": department})


SNAPSHOT = (
    g(1, status="PENDING", verification_status=None, category="Water", location="MG Road",
      description="Pipe burst", priority="HIGH", created_at=NOW - timedelta(hours=1)),
    g(2, status="PENDING", verification_status="APPROVED", category="Road", location="Park Road",
      created_at=NOW - timedelta(days=1)),
    g(3, status="PENDING", verification_status="REJECTED", category="Road", location="Park Road",
      created_at=NOW - timedelta(days=2)),
    g(4, status="IN_PROGRESS", verification_status="APPROVED", category="Water", location="MG Road",
      priority="URGENT", created_at=NOW - timedelta(days=3)),
    g(5, status="RESOLVED", verification_status="APPROVED", category="Water", location="Station Road",
      priority="HIGH", created_at=NOW - timedelta(days=4)),
    g(6, status="COMPLETED", verification_status="APPROVED", category="Electricity", created_at=None),
)


# ═══════════════════════════════════════════════════════════════════════════════
# FILTERING
# ═══════════════════════════════════════════════════════════════════════════════

class TestFiltering:
    def test_empty_search_matches_everything(self):
        assert all(matches_search(x, "") for x in SNAPSHOT)

    def test_search_covers_id_location_category_description(self):
        assert matches_search(SNAPSHOT[0], "burst")
        assert matches_search(SNAPSHOT[0], "mg road")
        assert matches_search(SNAPSHOT[0], "WATER")
        assert matches_search(SNAPSHOT[5], "6")
        assert not matches_search(SNAPSHOT[5], "road")

    def test_all_means_unconstrained(self):
        assert filter_grievances(SNAPSHOT, FilterCriteria()) == list(SNAPSHOT)

    def test_ui_status_spelling(self):
        result = filter_grievances(SNAPSHOT, FilterCriteria(status="in-progress"))
        assert [x.id for x in result] == [4]

    def test_synthetic_verification_filters(self):
        assert [x.id for x in filter_grievances(SNAPSHOT, FilterCriteria(status="rejected"))] == [3]
        assert [x.id for x in filter_grievances(SNAPSHOT, FilterCriteria(status="verified"))] == [2, 4, 5, 6]

    def test_combined_criteria(self):
        criteria = FilterCriteria(search="road", status="pending", category="Road")
        assert [x.id for x in filter_grievances(SNAPSHOT, criteria)] == [2, 3]

    def test_priority_filter(self):
        assert [x.id for x in filter_grievances(SNAPSHOT, FilterCriteria(priority="high"))] == [1, 5]

    def test_pending_verification_is_exact(self):
        expected = [x.id for x in SNAPSHOT
                    if x.status == "PENDING" and x.verification_status != "APPROVED"]
        first = pending_verification(SNAPSHOT)
        assert [x.id for x in first] == expected == [1, 3]
        assert pending_verification(SNAPSHOT) == first

    def test_filters_do_not_mutate_input(self):
        before = list(SNAPSHOT)
        filter_grievances(SNAPSHOT, FilterCriteria(status="resolved"))
        assert list(SNAPSHOT) == before


# ═══════════════════════════════════════════════════════════════════════════════
# COUNTS
# ═══════════════════════════════════════════════════════════════════════════════

class TestCounts:
    def test_status_counts(self):
        counts = status_counts(SNAPSHOT)
        assert (counts.total, counts.pending, counts.in_progress, counts.resolved) == (6, 3, 1, 2)
        assert counts.urgent == 3

    def test_admin_counts_unverified_as_pending(self):
        counts = status_counts(SNAPSHOT, admin=True)
        assert counts.pending == 3
        extra = status_counts(SNAPSHOT + (g(7, status="IN_PROGRESS", verification_status=None),), admin=True)
        assert extra.pending == 4
        assert extra.in_progress == 2

    def test_priority_issues_skip_resolved(self):
        assert [x.id for x in priority_issues(SNAPSHOT)] == [1, 4]

    def test_recent_newest_first(self):
        assert [x.id for x in recent(SNAPSHOT, 3)] == [1, 2, 3]
        assert recent(SNAPSHOT, 10)[-1].id == 6

    def test_todays_activity(self):
        activity = todays_activity(SNAPSHOT, today=NOW.date())
        assert (activity.new, activity.verified, activity.resolved) == (1, 0, 0)
        assert todays_activity(SNAPSHOT, today=date(2020, 1, 1)).new == 0

    def test_citizen_report_counts(self):
        users = [User(id=1, name="A", role="CITIZEN"), User(id=2, name="B", role="CITIZEN"),
                 User(id=9, name="Admin", role="ADMIN")]
        grievances = [Grievance.model_validate({"id": n, "user": {"id": 1}}) for n in (1, 2)]
        rows = citizens_with_report_counts(users, grievances)
        assert [(r.user.id, r.report_count) for r in rows] == [(1, 2), (2, 0)]


# ═══════════════════════════════════════════════════════════════════════════════
# DUPLICATES
# ═══════════════════════════════════════════════════════════════════════════════

class TestDuplicates:
    def test_same_title_and_location_within_window(self):
        existing = [g(1, title="Pipe Burst", location="MG Road", created_at=NOW - timedelta(hours=3))]
        assert is_duplicate(existing, "pipe burst", " mg road ", now=NOW)

    def test_outside_window(self):
        existing = [g(1, title="Pipe Burst", location="MG Road", created_at=NOW - timedelta(hours=25))]
        assert not is_duplicate(existing, "Pipe Burst", "MG Road", now=NOW)

    def test_different_location(self):
        existing = [g(1, title="Pipe Burst", location="MG Road", created_at=NOW)]
        assert not is_duplicate(existing, "Pipe Burst", "Park Road", now=NOW)


# ═══════════════════════════════════════════════════════════════════════════════
# WORKLOAD
# ═══════════════════════════════════════════════════════════════════════════════

def assigned(n, officer_id, status="IN_PROGRESS"):
    return [Grievance.model_validate({"id": 100 + i, "status": status, "assignedTo": {"id": officer_id}})
            for i in range(n)]


class TestWorkload:
    def test_busier_officer_ranked_first(self):
        officers = [officer(1, "Water"), officer(2, "Water")]
        grouped = workload_by_department(assigned(5, 2), officers)
        entries = grouped["Water Supply"]
        assert [e.officer_id for e in entries] == [2, 1]
        assert [e.assigned for e in entries] == [5, 0]

    def test_sum_of_assigned_equals_assigned_grievances(self):
        grievances = assigned(3, 1) + assigned(2, 2) + [g(50, status="PENDING")]
        entries = officer_workload(grievances, [officer(1), officer(2)])
        assert sum(e.assigned for e in entries) == sum(1 for x in grievances if x.assigned_to)

    def test_rates(self):
        grievances = (assigned(1, 1, "RESOLVED") + assigned(1, 1, "COMPLETED")
                      + assigned(1, 1, "PENDING") + assigned(1, 1, "IN_PROGRESS"))
        entry = officer_workload(grievances, [officer(1)])[0]
        assert (entry.resolved, entry.in_progress, entry.pending) == (2, 1, 1)
        assert entry.completion_rate == pytest.approx(0.5)
        assert entry.completion_percent == 50
        assert entry.rating == pytest.approx(2.5)

    def test_idle_officer_rates_are_zero(self):
        entry = officer_workload([], [officer(1)])[0]
        assert entry.completion_rate == 0.0
        assert entry.rating == 0.0

    def test_departments_sorted_and_missing_department_is_general(self):
        officers = [officer(1, "Water"), officer(2, "Road"), officer(3, None)]
        assert list(workload_by_department([], officers)) == [
            "General Department", "Roads & Infrastructure", "Water Supply"]

    def test_zone_summary(self):
        everything = list(SNAPSHOT)
        mine = [SNAPSHOT[4]]
        summary = zone_summary(everything, mine, "water")
        assert (summary.total, summary.pending, summary.in_progress, summary.resolved) == (3, 1, 1, 1)
        assert summary.resolution_rate == 33
        assert summary.contribution == 100

    def test_zone_summary_without_category(self):
        summary = zone_summary(SNAPSHOT, [], None)
        assert summary.total == 6
        assert summary.contribution == 0


# ═══════════════════════════════════════════════════════════════════════════════
# HEAT
# ═══════════════════════════════════════════════════════════════════════════════

class TestHeat:
    @pytest.mark.parametrize("count,tier", [(0, HeatTier.LOW), (4, HeatTier.LOW), (5, HeatTier.MEDIUM),
                                            (9, HeatTier.MEDIUM), (10, HeatTier.HIGH), (12, HeatTier.HIGH)])
    def test_tiers(self, count, tier):
        assert heat_tier(count) == tier

    def test_zone_heat_from_grievances(self):
        grievances = ([g(i, location="MG Road") for i in range(12)]
                      + [g(100 + i, location="Park Road") for i in range(4)])
        heat = {h.name: h.tier for h in zone_heat(grievances)}
        assert heat == {"MG Road": HeatTier.HIGH, "Park Road": HeatTier.LOW}

    def test_category_heat_sorted_by_count(self):
        assert [h.name for h in category_heat(SNAPSHOT)] == ["Water", "Road", "Electricity"]

    def test_rank_zones_limits_and_sorts(self):
        zones = [ZoneDistribution(zone="Park Road", count=4), ZoneDistribution(zone="MG Road", count=12),
                 ZoneDistribution(zone=None, count=1)]
        ranked = rank_zones(zones, limit=2)
        assert [(z.name, z.tier) for z in ranked] == [("MG Road", HeatTier.HIGH), ("Park Road", HeatTier.LOW)]
        assert rank_zones(zones)[-1].name == "Unknown"
