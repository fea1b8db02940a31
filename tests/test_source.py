from __future__ import annotations

import sys
import unittest
from dataclasses import replace
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
SRC_ROOT = REPO_ROOT / "src"
if str(SRC_ROOT) not in sys.path:
    sys.path.insert(0, str(SRC_ROOT))

from tests.helpers.diagnostics import text_diff  # noqa: E402
from wikireply.config import DEFAULT_CONFIG  # noqa: E402
from wikireply.errors import ParseError, WikitextError  # noqa: E402
from wikireply.locator import locate_or_raise  # noqa: E402
from wikireply.source import CommentData, PreviousComment  # noqa: E402
from wikireply.transformer import transform  # noqa: E402

ALICE_TS = "12:00, 1 May 2024 (UTC)"
BOB_TS = "12:05, 1 May 2024 (UTC)"

PAGE = (
    "== Topic ==\n"
    "Opening remark. [[User:Alice|Alice]] " + ALICE_TS + "\n"
    ":First reply. [[User:Bob|Bob]] " + BOB_TS + "\n"
    "\n"
    "== Next ==\n"
    "Other. [[User:Carol|Carol]] 13:00, 1 May 2024 (UTC)\n"
)

ALICE = CommentData(
    author="Alice",
    timestamp=ALICE_TS,
    index=0,
    section_headline="Topic",
    text="Opening remark.",
    level=0,
    is_opening_section=True,
)
BOB = CommentData(
    author="Bob",
    timestamp=BOB_TS,
    index=1,
    previous_comments=[PreviousComment("Alice", ALICE_TS)],
    section_headline="Topic",
    text="First reply.",
    level=1,
)


class TestCommentSourceShape(unittest.TestCase):
    def test_opening_comment(self):
        source = locate_or_raise(PAGE, ALICE)
        self.assertEqual(source.headline_code, "Topic")
        self.assertEqual(source.heading_level, 2)
        self.assertEqual(source.heading_start_index, 0)
        self.assertEqual(source.line_start_index, 0)
        self.assertEqual(source.code, "Opening remark.")
        self.assertEqual(source.signature_code, " [[User:Alice|Alice]] " + ALICE_TS)
        self.assertEqual(source.reply_indentation, ":")
        self.assertAlmostEqual(source.score, 4.5001)

    def test_indented_comment(self):
        source = locate_or_raise(PAGE, BOB)
        self.assertEqual(source.indentation, ":")
        self.assertEqual(source.reply_indentation, "::")
        self.assertEqual(source.code, "First reply.")
        self.assertEqual(source.line_start_index, PAGE.index(":First"))
        self.assertIsNone(source.headline_code)
        self.assertAlmostEqual(source.score, 3.0002)

    def test_prefix_moves_to_signature(self):
        page = "Point made. -- [[User:Alice|Alice]] " + ALICE_TS + "\n"
        data = CommentData(author="Alice", timestamp=ALICE_TS, index=0, text="Point made.")
        source = locate_or_raise(page, data)
        self.assertEqual(source.code, "Point made.")
        self.assertEqual(source.signature_code, " -- [[User:Alice|Alice]] " + ALICE_TS)


class TestToInput(unittest.TestCase):
    def test_line_breaks_are_reversed(self):
        page = "First line<br>\nsecond line\nthird line. [[User:Alice|Alice]] " + ALICE_TS + "\n"
        data = CommentData(author="Alice", timestamp=ALICE_TS, index=0, text="First line second line third line.")
        source = locate_or_raise(page, data)
        self.assertEqual(source.to_input(), "First line\nsecond line third line.")

    def test_indented_comment(self):
        self.assertEqual(locate_or_raise(PAGE, BOB).to_input(), "First reply.")


class TestModifyContext(unittest.TestCase):
    def test_reply_goes_after_comment(self):
        source = locate_or_raise(PAGE, BOB)
        new_page, code = source.modify_context(
            "reply",
            PAGE,
            lambda: transform(source.transform_request("Thanks!", "reply")),
        )
        expected = PAGE.replace(BOB_TS + "\n", BOB_TS + "\n:: Thanks! ~~~~\n", 1)
        self.assertEqual(code, ":: Thanks! ~~~~\n")
        self.assertEqual(new_page, expected, msg=text_diff(expected, new_page, "reply"))

    def test_reply_to_opening_comment_goes_after_thread(self):
        source = locate_or_raise(PAGE, ALICE)
        new_page, _ = source.modify_context(
            "reply",
            PAGE,
            lambda: transform(source.transform_request("Agreed.", "reply")),
        )
        expected = PAGE.replace(BOB_TS + "\n", BOB_TS + "\n: Agreed. ~~~~\n", 1)
        self.assertEqual(new_page, expected, msg=text_diff(expected, new_page, "reply"))

    def test_edit_replaces_comment(self):
        source = locate_or_raise(PAGE, BOB)
        code = transform(source.transform_request("Revised reply.", "edit"))
        new_page, _ = source.modify_context("edit", PAGE, code)
        expected = PAGE.replace(":First reply.", ": Revised reply.", 1)
        self.assertEqual(new_page, expected, msg=text_diff(expected, new_page, "edit"))

    def test_edit_opening_comment_keeps_heading(self):
        source = locate_or_raise(PAGE, ALICE)
        request = source.transform_request("New opening.", "edit", headline=source.headline_code)
        new_page, _ = source.modify_context("edit", PAGE, transform(request))
        expected = PAGE.replace("Opening remark.", "New opening.", 1)
        self.assertEqual(new_page, expected, msg=text_diff(expected, new_page, "edit"))

    def test_delete_comment_without_replies(self):
        source = locate_or_raise(PAGE, BOB)
        new_page, code = source.modify_context("edit", PAGE, delete=True)
        self.assertIsNone(code)
        expected = PAGE.replace(":First reply. [[User:Bob|Bob]] " + BOB_TS + "\n", "", 1)
        self.assertEqual(new_page, expected, msg=text_diff(expected, new_page, "delete"))

    def test_delete_refusals(self):
        with self.subTest(case="opening comment of a section with replies"):
            source = locate_or_raise(PAGE, ALICE)
            with self.assertRaises(ParseError) as ctx:
                source.modify_context("edit", PAGE, delete=True)
            self.assertEqual(ctx.exception.code, "delete-repliesInSection")

        with self.subTest(case="comment with replies"):
            page = (
                "Opening remark. [[User:Alice|Alice]] " + ALICE_TS + "\n"
                ":First reply. [[User:Bob|Bob]] " + BOB_TS + "\n"
                "::Answer. [[User:Carol|Carol]] 12:10, 1 May 2024 (UTC)\n"
            )
            source = locate_or_raise(page, replace(BOB, section_headline=None))
            with self.assertRaises(ParseError) as ctx:
                source.modify_context("edit", page, delete=True)
            self.assertEqual(ctx.exception.code, "delete-repliesToComment")

    def test_bad_arguments(self):
        source = locate_or_raise(PAGE, BOB)
        with self.assertRaises(WikitextError) as ctx:
            source.modify_context("reply", "", "x")
        self.assertEqual(ctx.exception.code, "noCode")
        with self.assertRaises(ValueError):
            source.modify_context("move", PAGE, "x")
        with self.assertRaises(ValueError):
            source.modify_context("edit", PAGE)

    def test_closed_discussion(self):
        config = replace(DEFAULT_CONFIG, closed_discussion_templates=(("Archive top",), ("Archive bottom",)))
        page = (
            "== Topic ==\n"
            "{{Archive top}}\n"
            "Opening remark. [[User:Alice|Alice]] " + ALICE_TS + "\n"
            "{{Archive bottom}}\n"
        )
        source = locate_or_raise(page, ALICE, config)
        with self.assertRaises(ParseError) as ctx:
            source.modify_context("reply", page, ":: x\n")
        self.assertEqual(ctx.exception.code, "closed")


if __name__ == "__main__":
    unittest.main()
