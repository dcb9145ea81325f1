"""
Main entry point untuk Student Application
"""
import argparse
import asyncio
import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from shared.errors import JoinError, RepositoryError
from shared.notifications.models import ViolationType
from shared.utils.config_loader import ConfigLoader
from shared.utils.logging_config import configure_logging
from student_app.app import (StudentApp, DEFAULT_CONFIG_PATH, DEFAULT_TEMPLATE_PATH,
                             format_classified)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="kuis-student", description="Kuis Pintar student client")
    parser.add_argument("--config", default=str(DEFAULT_CONFIG_PATH), help="Path ke student config")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("quizzes", help="Tampilkan quiz active, upcoming, completed")

    join = subparsers.add_parser("join", help="Join quiz dengan kode")
    join.add_argument("code")

    report = subparsers.add_parser("report", help="Laporkan violation ke server")
    report.add_argument("quiz_id")
    report.add_argument("violation_type", choices=[t.value for t in ViolationType])
    return parser


def main(argv=None) -> int:
    """Main function"""
    args = build_parser().parse_args(argv)
    config = ConfigLoader.load_config(args.config, str(DEFAULT_TEMPLATE_PATH))
    logger = configure_logging(
        ConfigLoader.get(config, 'logging.level', 'INFO'),
        ConfigLoader.get(config, 'logging.file')
    )

    student_app = StudentApp(config=config)

    try:
        if args.command == "quizzes":
            print(format_classified(student_app.list_quizzes()))
        elif args.command == "join":
            print(format_classified(student_app.join_quiz(args.code)))
        elif args.command == "report":
            violation_id = asyncio.run(
                student_app.report_violation(args.quiz_id, ViolationType(args.violation_type))
            )
            if violation_id is None:
                print("Violation report failed")
                return 1
            print(f"Violation reported: {violation_id}")
    except JoinError as e:
        print(f"Join failed: {e}")
        return 1
    except RepositoryError as e:
        logger.error("Repository error: %s", e)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
