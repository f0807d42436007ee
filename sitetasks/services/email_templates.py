"""Weekly digest rendering (subject, HTML and plain text)."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from html import escape
from typing import List, Optional, Sequence

from dateutil import parser as date_parser

from sitetasks.models.task import Task, TaskPriority

_STYLE = """
    body { font-family: Arial, sans-serif; line-height: 1.6; color: #333; }
    .container { max-width: 800px; margin: 0 auto; padding: 20px; }
    .header { background-color: #2c3e50; color: white; padding: 20px; border-radius: 5px 5px 0 0; }
    .content { background-color: #f9f9f9; padding: 20px; border: 1px solid #ddd; }
    .task-table { width: 100%; background-color: white; border-collapse: collapse; margin-top: 20px; }
    .footer { margin-top: 20px; padding: 10px; text-align: center; color: #666; font-size: 12px; }
    .priority-badge { display: inline-block; padding: 3px 8px; border-radius: 3px; font-size: 11px; margin-left: 10px; }
    .priority-urgent { background-color: #e74c3c; color: white; }
    .priority-high { background-color: #e67e22; color: white; }
    .priority-medium { background-color: #f39c12; color: white; }
    .priority-low { background-color: #95a5a6; color: white; }
"""

_PAGE = """<!DOCTYPE html>
<html>
<head>
<style>{style}</style>
</head>
<body>
  <div class="container">
    <div class="header">
      <h1>Weekly Task Summary</h1>
      <p>{name}</p>
    </div>
    <div class="content">
{body}
    </div>
{footer}
  </div>
</body>
</html>
"""

_TASK_ROWS = """
        <tr>
          <td style="padding: 10px; border-bottom: 1px solid #ddd;">
            <strong>{number}. {title}</strong>
            {badge}
          </td>
        </tr>
        <tr>
          <td style="padding: 10px 10px 10px 30px; border-bottom: 1px solid #ddd; color: #666;">
            <strong>Project:</strong> {project}<br>
            <strong>Area:</strong> {area}<br>
            <strong>Details:</strong> {details}<br>
            <strong>Due Date:</strong> {due_date}<br>
            <strong>Photo Needed:</strong> {photo}
          </td>
        </tr>"""


@dataclass
class EmailContent:
    """Rendered digest."""

    subject: str
    html: str
    text: str


def format_due_date(value: Optional[str]) -> str:
    """Render a due date as M/D/YYYY, or "Not specified" when absent."""
    if not value or not str(value).strip():
        return "Not specified"
    try:
        parsed = date_parser.parse(str(value))
    except (ValueError, OverflowError):
        return str(value)
    return f"{parsed.month}/{parsed.day}/{parsed.year}"


def priority_label(priority: Optional[str]) -> str:
    return (priority or "").strip() or TaskPriority.MEDIUM.value


def priority_badge(priority: Optional[str]) -> str:
    label = priority_label(priority)
    css_class = "priority-" + "-".join(label.lower().split())
    return f'<span class="priority-badge {escape(css_class)}">{escape(label)}</span>'


def _generated_on(today: Optional[date]) -> str:
    today = today or date.today()
    return f"{today.month}/{today.day}/{today.year}"


def _task_count_label(count: int) -> str:
    return f"{count} Open Task{'s' if count != 1 else ''}"


def render_no_tasks(name: str) -> EmailContent:
    body = (
        "      <p>Hello,</p>\n"
        "      <p>Great news! You have no open tasks this week.</p>\n"
        "      <p>Thank you for your continued excellent work!</p>"
    )
    html = _PAGE.format(style=_STYLE, name=escape(name), body=body, footer="")
    text = (
        f"Weekly Task Summary - {name}\n\n"
        "Great news! You have no open tasks this week.\n\n"
        "Thank you for your continued excellent work!"
    )
    return EmailContent(subject=f"Weekly Task Summary - {name} - No Open Tasks", html=html, text=text)


def render_html(tasks: Sequence[Task], name: str, company: str, today: Optional[date] = None) -> str:
    rows: List[str] = []
    for number, task in enumerate(tasks, start=1):
        rows.append(
            _TASK_ROWS.format(
                number=number,
                title=escape(task.task_title or "Task"),
                badge=priority_badge(task.priority),
                project=escape(task.project or "N/A"),
                area=escape(task.area or "N/A"),
                details=escape(task.task_details or task.task_title or "N/A"),
                due_date=escape(format_due_date(task.due_date)),
                photo="&#10003; Yes" if task.photo_needed else "No",
            )
        )
    body = (
        "      <p>Hello,</p>\n"
        f"      <p>Here is your weekly summary of open tasks from {escape(company)}:</p>\n"
        f"      <table class=\"task-table\">{''.join(rows)}\n      </table>\n"
        f"      <p style=\"margin-top: 20px;\"><strong>Total Open Tasks: {len(tasks)}</strong></p>\n"
        "      <p>Please review these tasks and update their status as you complete them.</p>\n"
        "      <p>If you have any questions, please contact us directly.</p>"
    )
    footer = (
        '    <div class="footer">\n'
        f"      <p>This is an automated email from {escape(company)} Task Management System.</p>\n"
        f"      <p>Generated on {_generated_on(today)}</p>\n"
        "    </div>"
    )
    return _PAGE.format(style=_STYLE, name=escape(name), body=body, footer=footer)


def render_text(tasks: Sequence[Task], name: str, today: Optional[date] = None) -> str:
    lines = [f"Weekly Task Summary - {name}", "", f"You have {len(tasks)} open task(s):", ""]
    for number, task in enumerate(tasks, start=1):
        lines.extend(
            [
                f"{number}. {task.task_title or 'Task'}",
                f"   Project: {task.project or 'N/A'}",
                f"   Area: {task.area or 'N/A'}",
                f"   Details: {task.task_details or task.task_title or 'N/A'}",
                f"   Priority: {priority_label(task.priority)}",
                f"   Due Date: {format_due_date(task.due_date)}",
                f"   Photo Needed: {'Yes' if task.photo_needed else 'No'}",
                "",
            ]
        )
    lines.extend(["", f"Generated on {_generated_on(today)}", ""])
    return "\n".join(lines)


def generate_email_content(
    tasks: Sequence[Task],
    name: str,
    *,
    company: str = "Legendary Homes",
    today: Optional[date] = None,
) -> EmailContent:
    """Render the weekly digest for one contractor."""
    if not tasks:
        return render_no_tasks(name)
    return EmailContent(
        subject=f"Weekly Task Summary - {name} - {_task_count_label(len(tasks))}",
        html=render_html(tasks, name, company, today),
        text=render_text(tasks, name, today),
    )
