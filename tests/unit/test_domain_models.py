"""Unit tests for request models and row conversion"""

from __future__ import annotations

from datetime import date

import pytest
from pydantic import ValidationError

from landiq.domain.models import (
    LeaveCreate,
    MessageCreate,
    PersonCreate,
    PersonUpdate,
    ResponsibilityUpdate,
    TaskCreate,
    TaskUpdate,
    UserRoleUpsert,
    WorkflowCreate,
    record_from_row,
    to_db_value,
)


def test_person_email_is_normalised():
    person = PersonCreate(name="Alice", email="  Alice@LandIQ.test ")

    assert person.email == "alice@landiq.test"
    assert PersonUpdate(email="Bob@X.com").email == "bob@x.com"


def test_person_rejects_bad_email_and_blank_name():
    with pytest.raises(ValidationError):
        PersonCreate(name="Alice", email="not-an-email")
    with pytest.raises(ValidationError):
        PersonCreate(name="  ", email="a@x.com")


def test_updates_reject_blank_names_but_allow_omission():
    with pytest.raises(ValidationError):
        TaskUpdate(name="   ")
    with pytest.raises(ValidationError):
        ResponsibilityUpdate(description="")

    assert TaskUpdate(name=" Triage ").name == "Triage"
    assert TaskUpdate(hours_per_week=2).name is None


def test_unknown_fields_are_rejected():
    with pytest.raises(ValidationError):
        TaskCreate(name="Triage", category_id="c1", owner="someone")


def test_negative_hours_rejected():
    with pytest.raises(ValidationError):
        TaskCreate(name="Triage", category_id="c1", hours_per_week=-1)


def test_leave_end_must_not_precede_start():
    with pytest.raises(ValidationError, match="end_date"):
        LeaveCreate(person_id="p1", start_date=date(2024, 5, 2), end_date=date(2024, 5, 1))

    leave = LeaveCreate(person_id="p1", start_date="2024-05-01", end_date="2024-05-01")
    assert leave.leave_type == "annual"


def test_message_content_trimmed_and_bounded():
    assert MessageCreate(content="  hello  ").content == "hello"
    with pytest.raises(ValidationError):
        MessageCreate(content="   ")
    with pytest.raises(ValidationError):
        MessageCreate(content="x" * 2001)
    assert len(MessageCreate(content="x" * 2000).content) == 2000


def test_user_role_upsert_validates_role():
    assert UserRoleUpsert(email="A@x.com", role="admin").role == "admin"
    with pytest.raises(ValidationError):
        UserRoleUpsert(email="a@x.com", role="owner")


def test_to_db_value():
    assert to_db_value(True) == 1
    assert to_db_value(date(2024, 5, 1)) == "2024-05-01"
    assert to_db_value([{"id": "n1"}]) == '[{"id": "n1"}]'
    assert to_db_value("text") == "text"


def test_record_from_row_decodes_flags_and_json():
    workflow = WorkflowCreate(name="Intake", task_id="t1", flow_data=[{"id": "n1"}])
    row = {k: to_db_value(v) for k, v in workflow.model_dump().items()}

    record = record_from_row(row, bool_fields=("is_active",), json_fields=("flow_data",))

    assert record["is_active"] is True
    assert record["flow_data"] == [{"id": "n1"}]
