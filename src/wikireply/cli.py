from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from .commands import resolve_config, run_edit, run_locate, run_reply, run_transform
from .config import ACTIONS, MODES, PRESETS
from .errors import ParseError
from .source import CommentData, PreviousComment
from .version import __version__

WIKIREPLY_HELP = f"""wikireply {__version__} - talk page comment wikitext

Turns comment text into wikitext for a talk page and finds comments in page code.

USAGE:
    wikireply <COMMAND> [OPTIONS]

COMMANDS:
    transform       Convert comment text to wikitext
    locate          Find a comment in page code, print its source data as JSON
    reply           Insert a reply to a comment into page code
    edit            Replace (or delete) a comment in page code

EXAMPLES:
    wikireply transform comment.txt --indentation '::'
    wikireply locate page.wiki --author Alice --timestamp '12:00, 1 May 2024 (UTC)'

Use 'wikireply <command> --help' for more information.
"""


def _handle_common_errors(fn):
    try:
        return fn()
    except ParseError as exc:
        print(f"error: {exc.code}: {exc}", file=sys.stderr)
        return 2
    except Exception as exc:  # pragma: no cover - explicit user-facing fallback path.
        print(f"error: {exc}", file=sys.stderr)
        return 1


def _configure_logging(verbosity: int) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity > 1:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


def _add_common_arguments(parser):
    parser.add_argument("-c", "--config", type=Path, help="JSON file with configuration overrides")
    parser.add_argument("--preset", choices=sorted(PRESETS), help="Base configuration preset")
    parser.add_argument("-v", "--verbose", action="count", default=0, help="More logging (repeat for debug)")


def _add_request_arguments(parser):
    parser.add_argument("--action", choices=ACTIONS, default="submit", help="Form action (default: submit)")
    parser.add_argument("--omit-signature", action="store_true", help="Don't add a signature")


def _add_comment_arguments(parser):
    parser.add_argument("page", type=Path, help="Page or section wikitext ('-' for stdin)")
    parser.add_argument("--author", required=True, help="Comment author")
    parser.add_argument("--timestamp", required=True, help="Comment timestamp as shown on the page")
    parser.add_argument("--headline", dest="section_headline", help="Headline of the comment's section")
    parser.add_argument("--index", type=int, help="Position of the comment among the page's comments")
    parser.add_argument("--text", default="", help="Comment text as shown on the page")
    parser.add_argument("--level", type=int, default=0, help="Nesting level of the comment")
    parser.add_argument(
        "--previous",
        action="append",
        default=[],
        metavar="AUTHOR|TIMESTAMP",
        help="A preceding comment, nearest first (repeatable)",
    )
    parser.add_argument("--opening-section", action="store_true", help="The comment opens its section")
    parser.add_argument("--table-comment", action="store_true", help="The comment is inside a table")


def _comment_data_from_args(args) -> CommentData:
    previous_comments = []
    for item in args.previous:
        author, _, timestamp = item.partition("|")
        previous_comments.append(PreviousComment(author.strip(), timestamp.strip() or None))
    return CommentData(
        author=args.author,
        timestamp=args.timestamp,
        index=args.index,
        previous_comments=previous_comments,
        section_headline=args.section_headline,
        text=args.text,
        level=args.level,
        is_opening_section=args.opening_section,
        is_table_comment=args.table_comment,
    )


def _build_transform_parser(prog_name: str):
    parser = argparse.ArgumentParser(
        prog=prog_name,
        description="transform - Convert comment text to talk page wikitext",
    )
    parser.add_argument("input", type=Path, nargs="?", help="Comment text file (default: stdin)")
    parser.add_argument("-o", "--output", type=Path, help="Output file (default: stdout)")
    parser.add_argument("--mode", choices=MODES, default="reply", help="Comment form mode (default: reply)")
    parser.add_argument("--indentation", default="", help="Indentation characters, e.g. '::'")
    parser.add_argument("--headline", help="Headline of a new section or subsection")
    parser.add_argument("--signature", dest="signature_code", help="Existing signature code to keep (edit mode)")
    parser.add_argument("--target-level", type=int, default=0, help="Level of the comment replied to")
    parser.add_argument("--heading-level", type=int, help="Level of the heading being edited")
    parser.add_argument("--outdented", dest="is_reply_outdented", action="store_true", help="Add an outdent template")
    _add_request_arguments(parser)
    _add_common_arguments(parser)
    return parser


def _build_locate_parser(prog_name: str):
    parser = argparse.ArgumentParser(
        prog=prog_name,
        description="locate - Find a comment in page code and print its source data",
    )
    _add_comment_arguments(parser)
    _add_common_arguments(parser)
    return parser


def _build_reply_parser(prog_name: str):
    parser = argparse.ArgumentParser(
        prog=prog_name,
        description="reply - Insert a reply to a comment into page code",
    )
    _add_comment_arguments(parser)
    parser.add_argument("--reply", dest="reply_text", required=True, help="Reply text")
    parser.add_argument("-o", "--output", type=Path, help="Output file (default: overwrite the page file)")
    _add_request_arguments(parser)
    _add_common_arguments(parser)
    return parser


def _build_edit_parser(prog_name: str):
    parser = argparse.ArgumentParser(
        prog=prog_name,
        description="edit - Replace or delete a comment in page code",
    )
    _add_comment_arguments(parser)
    group = parser.add_mutually_exclusive_group()
    group.add_argument("--new-text", help="New comment text (default: the current text)")
    group.add_argument("--delete", action="store_true", help="Delete the comment")
    parser.add_argument("-o", "--output", type=Path, help="Output file (default: overwrite the page file)")
    _add_request_arguments(parser)
    _add_common_arguments(parser)
    return parser


def main_transform(argv=None, prog_name=None):
    args = _build_transform_parser(prog_name or "wikireply transform").parse_args(argv)
    _configure_logging(args.verbose)
    return _handle_common_errors(
        lambda: run_transform(
            args.input,
            args.output,
            config=resolve_config(args.config, args.preset),
            mode=args.mode,
            action=args.action,
            indentation=args.indentation,
            headline=args.headline,
            omit_signature=args.omit_signature,
            signature_code=args.signature_code,
            target_level=args.target_level,
            heading_level=args.heading_level,
            is_reply_outdented=args.is_reply_outdented,
        )
    )


def main_locate(argv=None, prog_name=None):
    args = _build_locate_parser(prog_name or "wikireply locate").parse_args(argv)
    _configure_logging(args.verbose)
    return _handle_common_errors(
        lambda: run_locate(
            args.page,
            _comment_data_from_args(args),
            config=resolve_config(args.config, args.preset),
        )
    )


def main_reply(argv=None, prog_name=None):
    args = _build_reply_parser(prog_name or "wikireply reply").parse_args(argv)
    _configure_logging(args.verbose)
    return _handle_common_errors(
        lambda: run_reply(
            args.page,
            _comment_data_from_args(args),
            args.reply_text,
            args.output,
            config=resolve_config(args.config, args.preset),
            action=args.action,
            omit_signature=args.omit_signature,
        )
    )


def main_edit(argv=None, prog_name=None):
    args = _build_edit_parser(prog_name or "wikireply edit").parse_args(argv)
    _configure_logging(args.verbose)
    return _handle_common_errors(
        lambda: run_edit(
            args.page,
            _comment_data_from_args(args),
            args.new_text,
            args.output,
            config=resolve_config(args.config, args.preset),
            delete=args.delete,
            action=args.action,
            omit_signature=args.omit_signature,
        )
    )


SUBCOMMANDS = {
    "transform": main_transform,
    "locate": main_locate,
    "reply": main_reply,
    "edit": main_edit,
}


def main(argv=None):
    args_list = list(sys.argv[1:] if argv is None else argv)
    if not args_list or args_list[0] in {"-h", "--help"}:
        print(WIKIREPLY_HELP)
        return 0

    if args_list[0] in {"-V", "--version"}:
        print(f"wikireply {__version__}")
        return 0

    subcmd = args_list[0]
    if subcmd not in SUBCOMMANDS:
        print(f"error: unknown command '{subcmd}'. Use 'wikireply --help'.", file=sys.stderr)
        return 2
    return SUBCOMMANDS[subcmd](args_list[1:], prog_name=f"wikireply {subcmd}")
