"""
voc — command line front end.

    voc build <project> [--prod] [--clean]
    voc sim <project> [--script main] [--env acc] [--mode stub] [--storage memory]
    voc clean [project]
    voc list
"""
import argparse
import logging
import sys
from typing import List, Optional

from .assembler import build
from .config import settings
from .errors import ComplianceViolationError, EvaluationFailure, VocError
from .project import ProjectDescriptor
from .simulation import SimulationOptions, SimulationSession
from .workspace import clean_project, find_project, list_projects, project_info

VERSION = "2.0.0"


class Colors:
    OKBLUE = '\033[94m'
    OKCYAN = '\033[96m'
    OKGREEN = '\033[92m'
    WARNING = '\033[93m'
    FAIL = '\033[91m'
    ENDC = '\033[0m'


class Reporter:
    """Console output; quiet/verbose are explicit values, never globals."""

    def __init__(self, verbose: bool = False, quiet: bool = False, stream=None, err_stream=None):
        self.verbose = verbose
        self.quiet = quiet
        self.stream = stream or sys.stdout
        self.err_stream = err_stream or sys.stderr

    def log(self, message: str = "") -> None:
        if not self.quiet:
            print(message, file=self.stream)

    def success(self, message: str) -> None:
        if not self.quiet:
            print(f"{Colors.OKGREEN}{message}{Colors.ENDC}", file=self.stream)

    def debug(self, message: str) -> None:
        if self.verbose:
            print(f"{Colors.OKCYAN}{message}{Colors.ENDC}", file=self.stream)

    def error(self, message: str) -> None:
        print(f"{Colors.FAIL}{message}{Colors.ENDC}", file=self.err_stream)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="voc", description="Vocalls development environment CLI")
    parser.add_argument("--version", action="version", version=f"voc {VERSION}")
    parser.add_argument("--workspace", default=None, help="workspace root (default: VOC_WORKSPACE_ROOT)")
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument("--verbose", action="store_true", help="verbose output")
    verbosity.add_argument("--quiet", action="store_true", help="quiet output")
    sub = parser.add_subparsers(dest="command", required=True)

    p_build = sub.add_parser("build", help="Build project to monolithic output.")
    p_build.add_argument("project")
    p_build.add_argument("--prod", action="store_true", help="production build (no banners, strict)")
    p_build.add_argument("--clean", action="store_true", help="clean before build")

    p_sim = sub.add_parser("sim", help="Run project in simulation environment.")
    p_sim.add_argument("project")
    p_sim.add_argument("--script", default="main", help="call script to run")
    p_sim.add_argument("--env", default=settings.DEFAULT_ENVIRONMENT, help="environment (acc|prd|dvp)")
    p_sim.add_argument("--mode", choices=("stub", "real"), default=settings.DEFAULT_HTTP_MODE)
    p_sim.add_argument("--storage", choices=("memory", "disk"), default=settings.DEFAULT_STORAGE_MODE)
    p_sim.add_argument("--timeout", type=int, default=settings.SANDBOX_TIMEOUT_MS, help="budget in ms")
    p_sim.add_argument("--strict", action="store_true", help="fail on missing required fragments")

    p_clean = sub.add_parser("clean", help="Clean build artifacts.")
    p_clean.add_argument("project", nargs="?")

    sub.add_parser("list", help="List all projects.")
    return parser


def _handle_build(args, out: Reporter) -> int:
    path = find_project(args.project, args.workspace)
    if args.clean:
        clean_project(path)
    project = ProjectDescriptor.from_path(path)
    mode = "production" if args.prod else "development"
    out.log(f"Building {project.name} ({mode})")

    result = build(project, production=args.prod)
    for v in result.violations:
        out.log(f"  {Colors.WARNING}{v.fragment}:{v.line} [{v.rule_id}] {v.snippet}{Colors.ENDC}")
    out.success(f"Build completed: {result.monolith_path}")
    out.log(f"   Size: {result.size} bytes")
    out.log(f"   Fragments: {result.fragment_count}")
    return 0


def _handle_sim(args, out: Reporter) -> int:
    path = find_project(args.project, args.workspace)
    options = SimulationOptions(
        environment=args.env,
        http_mode=args.mode,
        storage_mode=args.storage,
        entry_script_name=args.script,
        timeout_ms=args.timeout,
        verbose=args.verbose,
        strict=args.strict,
    )
    out.log(f"Starting simulation: {args.project}")
    out.log(f"   Script: {args.script}")
    out.log(f"   Environment: {args.env}")
    out.log(f"   HTTP Mode: {args.mode}")
    out.log(f"   Storage Mode: {args.storage}")
    out.log()

    def sink(level: str, line: str) -> None:
        if level != "DEBUG" or out.verbose:
            out.log(line)

    report = SimulationSession(options, log_sink=sink).execute(path)

    out.success("Simulation completed successfully!")
    out.log(f"   Execution time: {report.elapsed_ms:.0f}ms")
    out.log(f"   Files loaded: {report.fragments_loaded}")
    out.log(f"   HTTP requests: {report.http_call_count}")
    out.log(f"   Storage operations: {report.storage_op_count}")
    out.log(f"   Session variables: {len(report.session_variables)}")
    return 0


def _handle_clean(args, out: Reporter) -> int:
    names = [args.project] if args.project else list_projects(args.workspace)
    for name in names:
        if clean_project(find_project(name, args.workspace)):
            out.log(f"  Cleaned {name}/{settings.DIST_DIR}")
    out.success("Clean completed!")
    return 0


def _handle_list(args, out: Reporter) -> int:
    names = list_projects(args.workspace)
    if not names:
        out.log("No projects found in workspace.")
        return 0
    out.log(f"Found {len(names)} projects:")
    out.log()
    for name in names:
        info = project_info(find_project(name, args.workspace))
        out.log(f"  {info.name}")
        out.log(f"   Customer: {info.customer}")
        out.log(f"   Version: {info.version}")
        if info.description:
            out.log(f"   Description: {info.description}")
    return 0


_HANDLERS = {
    "build": _handle_build,
    "sim": _handle_sim,
    "clean": _handle_clean,
    "list": _handle_list,
}


def main(argv: Optional[List[str]] = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    out = Reporter(verbose=args.verbose, quiet=args.quiet)

    level = logging.DEBUG if args.verbose else logging.ERROR if args.quiet else settings.LOG_LEVEL
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")

    try:
        return _HANDLERS[args.command](args, out)
    except ComplianceViolationError as e:
        out.error(f"Build failed: {e}")
        return 1
    except EvaluationFailure as e:
        out.error(f"Simulation failed: {e}")
        if out.verbose and e.__cause__ is not None:
            out.error(str(e.__cause__))
        return 1
    except VocError as e:
        out.error(f"Error: {e}")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
