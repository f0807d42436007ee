"""Tests for weekly digest rendering."""
from datetime import date

from sitetasks.models.task import Task
from sitetasks.services.email_templates import format_due_date, generate_email_content, priority_badge


def make_task(title, **fields):
    return Task(task_id="2026-03-09T14:30:00.000Z", project=fields.pop("project", "Lot 3"), task_title=title, **fields)


def test_no_tasks():
    content = generate_email_content([], "Smith Drywall")
    assert content.subject == "Weekly Task Summary - Smith Drywall - No Open Tasks"
    assert "no open tasks this week" in content.text


def test_subject_counts_tasks():
    assert generate_email_content([make_task("A")], "Smith").subject == "Weekly Task Summary - Smith - 1 Open Task"
    assert (
        generate_email_content([make_task("A"), make_task("B")], "Smith").subject
        == "Weekly Task Summary - Smith - 2 Open Tasks"
    )


def test_text_body():
    task = make_task("Patch ceiling", area="Kitchen", priority="High", due_date="2026-03-20", photo_needed=True)
    text = generate_email_content([task], "Smith", today=date(2026, 3, 16)).text

    assert "1. Patch ceiling" in text
    assert "Project: Lot 3" in text
    assert "Area: Kitchen" in text
    assert "Details: Patch ceiling" in text
    assert "Priority: High" in text
    assert "Due Date: 3/20/2026" in text
    assert "Photo Needed: Yes" in text
    assert "Generated on 3/16/2026" in text


def test_html_body_is_escaped():
    task = make_task("<script>alert(1)</script>", project="Smith & Sons", priority="Urgent")
    html = generate_email_content([task], "Smith", company="Legendary Homes").html

    assert "<script>" not in html
    assert "&lt;script&gt;" in html
    assert "Smith &amp; Sons" in html
    assert "priority-urgent" in html
    assert "Total Open Tasks: 1" in html
    assert "Legendary Homes Task Management System" in html


def test_format_due_date():
    assert format_due_date("") == "Not specified"
    assert format_due_date(None) == "Not specified"
    assert format_due_date("2026-03-05") == "3/5/2026"
    assert format_due_date("next-ish") == "next-ish"


def test_priority_badge_defaults_to_medium():
    assert priority_badge("") == '<span class="priority-badge priority-medium">Medium</span>'
