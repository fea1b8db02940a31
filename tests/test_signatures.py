from __future__ import annotations

import sys
import unittest
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
SRC_ROOT = REPO_ROOT / "src"
if str(SRC_ROOT) not in sys.path:
    sys.path.insert(0, str(SRC_ROOT))

from wikireply.signatures import UNDATED_AUTHOR, extract_signatures, normalize_user_name  # noqa: E402

THREAD = (
    "Hello there. [[User:Alice|Alice]] ([[User talk:Alice|talk]]) 12:00, 1 May 2024 (UTC)\n"
    ":Reply here. [[User:Bob|Bob]] 12:05, 1 May 2024 (UTC)\n"
)


class TestExtractSignatures(unittest.TestCase):
    def test_thread(self):
        signatures = extract_signatures(THREAD)
        self.assertEqual([sig.author for sig in signatures], ["Alice", "Bob"])
        self.assertEqual([sig.index for sig in signatures], [0, 1])
        self.assertEqual(signatures[0].timestamp, "12:00, 1 May 2024 (UTC)")

        first = signatures[0]
        self.assertEqual(first.start_index, THREAD.index("[[User:Alice"))
        self.assertEqual(
            first.dirty_code,
            "[[User:Alice|Alice]] ([[User talk:Alice|talk]]) 12:00, 1 May 2024 (UTC)",
        )
        self.assertEqual(first.end_index, first.start_index + len(first.dirty_code))
        self.assertEqual(first.comment_start_index, 0)

        second = signatures[1]
        self.assertEqual(second.comment_start_index, THREAD.index(":Reply"))
        self.assertEqual(second.line_start_index, THREAD.index(":Reply"))
        self.assertEqual(second.next_comment_start_index, len(THREAD))

    def test_unsigned_template(self):
        code = "Some comment {{unsigned|Carol|12:30, 2 May 2024 (UTC)}}\n"
        signatures = extract_signatures(code)
        self.assertEqual(len(signatures), 1)
        signature = signatures[0]
        self.assertEqual(signature.author, "Carol")
        self.assertEqual(signature.timestamp, "12:30, 2 May 2024 (UTC)")
        self.assertEqual(signature.dirty_code, "{{unsigned|Carol|12:30, 2 May 2024 (UTC)}}")

    def test_timestamp_without_author(self):
        signatures = extract_signatures("A note without a link. 09:15, 3 May 2024 (UTC)\n")
        self.assertEqual(len(signatures), 1)
        self.assertEqual(signatures[0].author, UNDATED_AUTHOR)
        self.assertEqual(signatures[0].timestamp, "09:15, 3 May 2024 (UTC)")

    def test_ignored_places(self):
        cases = [
            "<!-- [[User:Eve|Eve]] 10:00, 1 May 2024 (UTC) -->\n",
            "<blockquote>[[User:Eve|Eve]] 10:00, 1 May 2024 (UTC)</blockquote>\n",
            "No signature here at all.\n",
        ]
        for code in cases:
            with self.subTest(code=code):
                self.assertEqual(extract_signatures(code), [])


class TestUserNames(unittest.TestCase):
    def test_normalize_user_name(self):
        cases = [
            ("alice_smith", "Alice smith"),
            ("Bob", "Bob"),
            (" carol ", "Carol"),
            ("D&amp;E", "D&E"),
        ]
        for raw, expected in cases:
            with self.subTest(raw=raw):
                self.assertEqual(normalize_user_name(raw), expected)


if __name__ == "__main__":
    unittest.main()
