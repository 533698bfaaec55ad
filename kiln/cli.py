"""Kiln Ledger - Command-line front end.

    kiln-ledger [--database PATH] [--json] kiln create NAME [DESCRIPTION]
    kiln-ledger kiln list
    kiln-ledger kiln info NAME
    kiln-ledger program create KILN NAME [DESCRIPTION]
    kiln-ledger program list KILN
    kiln-ledger program info KILN NAME
    kiln-ledger program add-step KILN NAME RAMP TARGET DWELL
    kiln-ledger project create NAME [DESCRIPTION]
    kiln-ledger project list
    kiln-ledger project info NAME
    kiln-ledger project add-firing PROJECT KILN PROGRAM [COMMENT]
    kiln-ledger project add-image PROJECT FILE [CAPTION]

RAMP is AFAP or an integer rate in degrees/second, TARGET is integer degrees
and DWELL is integer minutes.

Exit codes: 0 success, 1 database error, 2 usage error.
"""

from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Sequence
from pathlib import Path

from kiln.config import DB_PATH, LOG_LEVEL
from kiln.database import KilnDatabase
from kiln.entities import FiringStep, KilnProgram, KilnProject, RampRate
from kiln.errors import KilnDatabaseError, NoSuchName, NoSuchProgram
from kiln.schemas import KilnProgramView, KilnProjectView, KilnView

logger = logging.getLogger(__name__)


def _ramp_rate(text: str) -> RampRate:
    try:
        return RampRate.parse(text)
    except ValueError:
        raise argparse.ArgumentTypeError(
            f"ramp must be AFAP or a non-negative integer, got {text!r}"
        ) from None


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="kiln-ledger", description="Track kiln firing programs and projects"
    )
    parser.add_argument(
        "--database",
        type=Path,
        default=DB_PATH,
        help=f"Database file (default: {DB_PATH})",
    )
    parser.add_argument(
        "--json", action="store_true", help="Print info output as JSON"
    )
    commands = parser.add_subparsers(dest="command", required=True)

    # kiln
    kiln = commands.add_parser("kiln", help="Define and inspect kilns")
    kiln_ops = kiln.add_subparsers(dest="operation", required=True)
    op = kiln_ops.add_parser("create", help="Define a new kiln")
    op.add_argument("name")
    op.add_argument("description", nargs="?", default="")
    kiln_ops.add_parser("list", help="List the names of all kilns")
    op = kiln_ops.add_parser("info", help="Describe a kiln")
    op.add_argument("name")

    # program
    program = commands.add_parser("program", help="Define and inspect kiln programs")
    program_ops = program.add_subparsers(dest="operation", required=True)
    op = program_ops.add_parser("create", help="Define a new program on a kiln")
    op.add_argument("kiln")
    op.add_argument("name")
    op.add_argument("description", nargs="?", default="")
    op = program_ops.add_parser("list", help="List the programs of a kiln")
    op.add_argument("kiln")
    op = program_ops.add_parser("info", help="Describe a program and its steps")
    op.add_argument("kiln")
    op.add_argument("name")
    op = program_ops.add_parser("add-step", help="Append a step to a program")
    op.add_argument("kiln")
    op.add_argument("name")
    op.add_argument("ramp", type=_ramp_rate)
    op.add_argument("target", type=int)
    op.add_argument("dwell", type=int)

    # project
    project = commands.add_parser("project", help="Track projects")
    project_ops = project.add_subparsers(dest="operation", required=True)
    op = project_ops.add_parser("create", help="Define a new project")
    op.add_argument("name")
    op.add_argument("description", nargs="?", default="")
    project_ops.add_parser("list", help="List the names of all projects")
    op = project_ops.add_parser("info", help="Describe a project")
    op.add_argument("name")
    op = project_ops.add_parser("add-firing", help="Record a firing of a project")
    op.add_argument("project")
    op.add_argument("kiln")
    op.add_argument("program")
    op.add_argument("comment", nargs="?", default="")
    op = project_ops.add_parser("add-image", help="Attach an image file to a project")
    op.add_argument("project")
    op.add_argument("file", type=Path)
    op.add_argument("caption", nargs="?", default="")

    return parser


# --- Output ---


def _print_program(program: KilnProgram) -> None:
    print(f"Kiln       : {program.kiln.name}")
    print(f"Program    : {program.sequence.name}")
    print(f"Description: {program.sequence.description}")
    for number, step in enumerate(program.steps, start=1):
        print(
            f"  {number:>3}: ramp {step.ramp_rate} to {step.target_temp}"
            f" hold {step.dwell_time} min"
        )


def _print_project(project: KilnProject) -> None:
    print(f"Name       : {project.project.name}")
    print(f"Description: {project.project.description}")
    print(f"Firings    : {project.num_firings}")
    for firing in project.firings:
        print(f"  {firing.program.kiln.name}/{firing.program.sequence.name}: {firing.comment}")
    print(f"Images     : {project.num_images}")
    for image in project.pictures:
        print(f"  {image.name} ({len(image.contents)} bytes): {image.description}")


# --- Commands ---


def _run_kiln(db: KilnDatabase, args: argparse.Namespace) -> int:
    if args.operation == "create":
        db.add_kiln(args.name, args.description)
    elif args.operation == "list":
        for name in db.list_kilns():
            print(name)
    else:
        kiln = db.get_kiln(args.name)
        if kiln is None:
            raise NoSuchName(args.name)
        if args.json:
            print(KilnView.from_kiln(kiln).model_dump_json(indent=2))
        else:
            print(f"Name       : {kiln.name}")
            print(f"Description: {kiln.description}")
    return 0


def _run_program(db: KilnDatabase, args: argparse.Namespace) -> int:
    if args.operation == "create":
        db.add_kiln_program(args.kiln, args.name, args.description)
    elif args.operation == "list":
        for name in db.list_kiln_programs(args.kiln):
            print(name)
    elif args.operation == "info":
        program = db.get_kiln_program(args.kiln, args.name)
        if program is None:
            raise NoSuchProgram(args.kiln, args.name)
        if args.json:
            print(KilnProgramView.from_program(program).model_dump_json(indent=2))
        else:
            _print_program(program)
    else:
        program = db.get_kiln_program(args.kiln, args.name)
        if program is None:
            raise NoSuchProgram(args.kiln, args.name)
        # Ids are placeholders; the store assigns real ones on replacement.
        program.add_step(FiringStep(0, 0, args.ramp, args.target, args.dwell))
        db.update_kiln_program(program)
    return 0


def _run_project(db: KilnDatabase, args: argparse.Namespace) -> int:
    if args.operation == "create":
        db.add_project(args.name, args.description)
    elif args.operation == "list":
        for name in db.list_projects():
            print(name)
    elif args.operation == "info":
        project = db.get_project(args.name)
        if project is None:
            raise NoSuchName(args.name)
        if args.json:
            print(KilnProjectView.from_project(project).model_dump_json(indent=2))
        else:
            _print_project(project)
    else:
        project = db.get_project(args.project)
        if project is None:
            raise NoSuchName(args.project)
        if args.operation == "add-firing":
            db.add_project_firing(project, args.kiln, args.program, args.comment)
        else:
            contents = args.file.read_bytes()
            db.add_project_image(project, args.file.name, args.caption, contents)
    return 0


_HANDLERS = {
    "kiln": _run_kiln,
    "program": _run_program,
    "project": _run_project,
}


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(level=LOG_LEVEL)

    try:
        with KilnDatabase.open(args.database) as db:
            return _HANDLERS[args.command](db, args)
    except (KilnDatabaseError, OSError) as e:
        logger.debug("Command %s %s failed", args.command, args.operation, exc_info=True)
        print(str(e), file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
