"""
Classifier tests: labels, badge classes and display fallbacks.

Pure functions, no backend needed.
"""

from datetime import datetime

import pytest

from civicpulse.classifier import (
    classify, department_display, format_date, priority_bucket, priority_class, rating_label,
    sla_class, status_class, status_label, verification_badge, workload_class,
)
from civicpulse.models import Grievance


# ═══════════════════════════════════════════════════════════════════════════════
# STATUS
# ═══════════════════════════════════════════════════════════════════════════════

class TestStatus:
    @pytest.mark.parametrize("status,label", [
        ("PENDING", "Pending"),
        ("IN_PROGRESS", "In Progress"),
        ("RESOLVED", "Resolved"),
        ("COMPLETED", "Completed"),
    ])
    def test_known_labels(self, status, label):
        assert status_label(status) == label

    def test_unknown_status_passes_through(self):
        assert status_label("CLOSED") == "CLOSED"
        assert status_label("REJECTED") == "REJECTED"

    def test_missing_status(self):
        assert status_label(None) == "N/A"

    def test_completed_shares_resolved_class(self):
        assert status_class("COMPLETED") == status_class("RESOLVED") == "status-resolved"
        assert status_class("IN_PROGRESS") == "status-in-progress"

    def test_unknown_status_class_defaults_to_pending(self):
        assert status_class("CLOSED") == "status-pending"
        assert status_class(None) == "status-pending"


# ═══════════════════════════════════════════════════════════════════════════════
# VERIFICATION & PRIORITY
# ═══════════════════════════════════════════════════════════════════════════════

class TestBadges:
    def test_verification_badges(self):
        assert verification_badge("APPROVED")[0] == "Verified"
        assert verification_badge("REJECTED")[0] == "Rejected"
        assert verification_badge("PENDING")[0] == "Pending Verification"
        assert verification_badge(None)[0] == "Pending Verification"

    def test_priority_bucket_is_case_insensitive(self):
        assert priority_bucket("urgent") == "URGENT"
        assert priority_class("High") == "priority-high"

    def test_priority_defaults_to_medium(self):
        assert priority_bucket(None) == "MEDIUM"
        assert priority_bucket("critical") == "MEDIUM"
        assert priority_class("") == "priority-medium"


# ═══════════════════════════════════════════════════════════════════════════════
# CLASSIFY
# ═══════════════════════════════════════════════════════════════════════════════

class TestClassify:
    def test_bare_grievance_gets_fallbacks(self):
        c = classify(Grievance(id=7))
        assert c.title == "Untitled Report"
        assert c.description == "No description"
        assert c.location == "N/A"
        assert c.citizen == "N/A"
        assert c.status_label == "N/A"
        assert c.priority == "MEDIUM"
        assert c.created == "N/A"
        assert c.officer is None

    def test_full_grievance(self):
        g = Grievance.model_validate({
            "id": 3, "title": "Pothole", "status": "IN_PROGRESS", "verificationStatus": "APPROVED",
            "priority": "urgent", "user": {"id": 1, "fullName": "Ravi"},
            "assignedTo": {"id": 45, "name": "Officer 1"}, "createdAt": "2025-12-26T16:44:24",
        })
        c = classify(g)
        assert c.status_label == "In Progress"
        assert c.status_class == "status-in-progress"
        assert c.verification_label == "Verified"
        assert c.priority_class == "priority-urgent"
        assert c.citizen == "Ravi"
        assert c.officer == "Officer 1"
        assert c.created == "26 Dec 2025"


# ═══════════════════════════════════════════════════════════════════════════════
# DISPLAY HELPERS
# ═══════════════════════════════════════════════════════════════════════════════

class TestDisplayHelpers:
    def test_format_date(self):
        assert format_date(datetime(2026, 1, 5, 9, 30)) == "05 Jan 2026"
        assert format_date(None) == "N/A"

    def test_rating_labels(self):
        assert rating_label(1) == "Very Dissatisfied"
        assert rating_label(5) == "Very Satisfied"
        assert rating_label(0) == ""

    def test_department_display(self):
        assert department_display("Road") == "Roads & Infrastructure"
        assert department_display("Street Light") == "Street Lighting"
        assert department_display(None) == "General Department"
        assert department_display("Parks") == "Parks"

    @pytest.mark.parametrize("assigned,expected", [(0, "low"), (2, "low"), (3, "medium"), (5, "medium"), (6, "high")])
    def test_workload_class(self, assigned, expected):
        assert workload_class(assigned) == expected

    @pytest.mark.parametrize("rate,expected", [(95.0, "success"), (80.0, "success"), (60.0, "warning"), (59.9, "danger")])
    def test_sla_class(self, rate, expected):
        assert sla_class(rate) == expected
