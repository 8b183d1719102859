"""Commands that work on one assessment: download, submit, scores, feedback."""

from __future__ import annotations

import shutil
from pathlib import Path
from typing import Optional

import typer

from autolab_cli.commands import format_time, open_client
from autolab_cli.context import (
    check_against_marker,
    parse_course_and_asmt,
    resolve_assessment,
    write_marker,
)
from autolab_cli.exceptions import AutolabError, InvalidUsageError, NotFoundError
from autolab_cli.output import debug, info, print_data, print_scores, report_attachment, success

_TARGET_HELP = "Optional inside an assessment directory."


def download_command(
    ctx: typer.Context,
    target: str = typer.Argument(metavar="COURSE:ASSESSMENT", help="Assessment to download."),
) -> None:
    """Create a directory for an assessment and fetch its handout and writeup.

    The directory gets a local ``.autolab-asmt`` marker so that
    ``autolab submit <file>`` works inside it without naming the assessment.
    """
    course, assessment = parse_course_and_asmt(target)
    info(f"Querying assessment '{assessment}' of course '{course}' ...")

    with open_client(ctx) as client:
        details = client.get_assessment_details(course, assessment)

        new_dir = Path.cwd() / assessment
        if new_dir.exists():
            raise InvalidUsageError(
                f"Directory named '{assessment}' already exists. "
                "Please delete or rename before proceeding."
            )
        info(f"Creating directory {new_dir}")
        new_dir.mkdir(parents=True)
        try:
            report_attachment("handout", client.download_handout(new_dir, course, assessment))
            report_attachment("writeup", client.download_writeup(new_dir, course, assessment))
        except BaseException:
            shutil.rmtree(new_dir, ignore_errors=True)
            raise

    write_marker(new_dir, course, assessment)
    success(f"Assessment directory ready: {new_dir}")
    info(f"Due: {format_time(details.due_at)}")


def submit_command(
    ctx: typer.Context,
    first: str = typer.Argument(
        metavar="[COURSE:ASSESSMENT] FILE", help="Assessment (optional) and file to submit."
    ),
    second: Optional[str] = typer.Argument(None, hidden=True),
    force: bool = typer.Option(
        False,
        "--force",
        "-f",
        help="Use the given course:assessment even if the local marker disagrees.",
    ),
) -> None:
    """Submit a file to an assessment.

    The names may be omitted inside an assessment directory. If they are
    given and disagree with the directory's marker the command fails,
    unless ``--force`` is used.

    Example::

        autolab submit handin.tar
        autolab submit 15213-f24:datalab bits.c -f
    """
    raw, filename = (first, second) if second is not None else (None, first)

    if force:
        if raw is None:
            raise InvalidUsageError(
                "The '-f' option can only be used when the course and assessment "
                "names are also specified."
            )
        course, assessment = parse_course_and_asmt(raw)
    else:
        course, assessment = check_against_marker(raw)

    path = Path(filename)
    if not path.is_file():
        raise NotFoundError(f"File not found: {filename}")

    suffix = " (force)" if force else ""
    info(f"Submitting to {course}:{assessment} ...{suffix}")
    with open_client(ctx) as client:
        version = client.submit_assessment(course, assessment, path)

    success(f"Successfully submitted to Autolab (version {version})")


def scores_command(
    ctx: typer.Context,
    target: Optional[str] = typer.Argument(None, metavar="COURSE:ASSESSMENT", help=_TARGET_HELP),
    show_all: bool = typer.Option(
        False, "--all", "-a", help="Show scores from all submissions, not only the latest."
    ),
) -> None:
    """Show the scores received on an assessment."""
    course, assessment = resolve_assessment(target)
    with open_client(ctx) as client:
        problems = client.get_problems(course, assessment)
        submissions = client.get_submissions(course, assessment)
    debug(f"Found {len(submissions)} submissions.")

    info(f"Scores for {course}:{assessment}")
    info("(Only submissions made via this client can be shown)")

    shown = submissions if show_all else submissions[:1]
    print_scores(problems, shown, title=f"Scores for {course}:{assessment}")
    if not shown:
        info("(no submissions)")


def feedback_command(
    ctx: typer.Context,
    target: Optional[str] = typer.Argument(None, metavar="COURSE:ASSESSMENT", help=_TARGET_HELP),
    problem: Optional[str] = typer.Option(
        None, "--problem", "-p", help="Problem name. Defaults to the first problem."
    ),
    version: Optional[int] = typer.Option(
        None, "--version-number", "-n", help="Submission version. Defaults to the latest."
    ),
) -> None:
    """Show the feedback on one problem of a submission."""
    course, assessment = resolve_assessment(target)
    with open_client(ctx) as client:
        if version is None:
            submissions = client.get_submissions(course, assessment)
            if not submissions:
                raise AutolabError("No submissions available for this assessment.")
            version = submissions[0].version

        if problem is None:
            problems = client.get_problems(course, assessment)
            if not problems:
                raise AutolabError("This assessment has no problems.")
            problem = problems[0].name
        debug(f"Using problem name: {problem}")

        feedback = client.get_feedback(course, assessment, version, problem)

    print_data(feedback)
