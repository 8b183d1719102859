"""Read-only listing commands: courses, assessments, problems, status.

Entries matching the assessment directory the user is standing in are
marked with ``*``.
"""

from __future__ import annotations

from typing import Optional

import typer

from autolab_cli.commands import format_time, open_client
from autolab_cli.context import MAX_SEARCH_LEVELS, read_marker, resolve_assessment
from autolab_cli.output import debug, info, print_record, print_table


def courses_command(ctx: typer.Context) -> None:
    """List all current courses of the user."""
    marker = read_marker()
    current = marker.course.lower() if marker else None

    with open_client(ctx) as client:
        courses = client.get_courses()
    debug(f"Found {len(courses)} current courses.")

    rows = [
        ["*" if c.name.lower() == current else "", c.name, c.display_name]
        for c in courses
    ]
    print_table(["", "name", "display_name"], rows, title="Courses")


def assessments_command(
    ctx: typer.Context,
    course: str = typer.Argument(help="Course name (e.g. '15213-f24')."),
) -> None:
    """List all available assessments of a course."""
    marker = read_marker()
    current = None
    if marker is not None and marker.course.lower() == course.lower():
        current = marker.assessment.lower()

    with open_client(ctx) as client:
        assessments = client.get_assessments(course)
    debug(f"Found {len(assessments)} assessments.")

    rows = [
        ["*" if a.name.lower() == current else "", a.name, a.display_name]
        for a in sorted(assessments, key=lambda a: a.name)
    ]
    print_table(["", "name", "display_name"], rows, title=f"Assessments of {course}")


def problems_command(
    ctx: typer.Context,
    target: Optional[str] = typer.Argument(
        None,
        metavar="COURSE:ASSESSMENT",
        help="Optional inside an assessment directory.",
    ),
) -> None:
    """List all problems of an assessment."""
    course, assessment = resolve_assessment(target)
    with open_client(ctx) as client:
        problems = client.get_problems(course, assessment)
    debug(f"Found {len(problems)} problems.")

    rows = [
        [p.name, "" if p.max_score is None else f"{p.max_score:g}"]
        for p in problems
    ]
    print_table(["name", "max_score"], rows, title=f"Problems of {course}:{assessment}")


def status_command(ctx: typer.Context) -> None:
    """Show the assessment of the current directory, if any."""
    marker = read_marker()
    if marker is None:
        info("Not currently in any assessment directory")
        info(
            "Failed to find an assessment config file in the current directory or any "
            f"of its parent directories (up to {MAX_SEARCH_LEVELS} levels)."
        )
        return

    info(f"Assessment Config: {marker}")
    with open_client(ctx) as client:
        details = client.get_assessment_details(marker.course, marker.assessment)

    max_submissions = "Infinite" if details.max_submissions < 0 else details.max_submissions
    print_record(
        {
            "assessment": details.display_name or details.name,
            "due": format_time(details.due_at),
            "max_submissions": max_submissions,
            "max_grace_days": details.max_grace_days,
        }
    )
