from __future__ import annotations

import io
import json
import os
import subprocess
import sys
import tempfile
import unittest
from contextlib import redirect_stderr, redirect_stdout
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
SRC_ROOT = REPO_ROOT / "src"
if str(SRC_ROOT) not in sys.path:
    sys.path.insert(0, str(SRC_ROOT))

from wikireply.cli import main  # noqa: E402
from wikireply.version import __version__  # noqa: E402

BOB_TS = "12:05, 1 May 2024 (UTC)"
PAGE = (
    "== Topic ==\n"
    "Opening remark. [[User:Alice|Alice]] 12:00, 1 May 2024 (UTC)\n"
    ":First reply. [[User:Bob|Bob]] " + BOB_TS + "\n"
)
BOB_ARGS = ["--author", "Bob", "--timestamp", BOB_TS, "--text", "First reply.", "--level", "1", "--index", "1"]


def run_main(argv):
    stdout, stderr = io.StringIO(), io.StringIO()
    with redirect_stdout(stdout), redirect_stderr(stderr):
        code = main(argv)
    return code, stdout.getvalue(), stderr.getvalue()


class TestCliEntrypoints(unittest.TestCase):
    def setUp(self) -> None:
        self.case_dir = Path(tempfile.mkdtemp(prefix="cli-"))
        self.page = self.case_dir / "page.wiki"
        self.page.write_text(PAGE, encoding="utf-8")

    def run_cmd(self, cmd, extra_env=None):
        env = os.environ.copy()
        if extra_env:
            env.update(extra_env)
        proc = subprocess.run(cmd, cwd=str(REPO_ROOT), capture_output=True, text=True, env=env)
        return proc.returncode, proc.stdout, proc.stderr

    def test_help_screens_exit_zero(self):
        commands = [
            [sys.executable, "-m", "wikireply", "--help"],
            [sys.executable, "-m", "wikireply", "transform", "--help"],
            [sys.executable, "-m", "wikireply", "locate", "--help"],
            [sys.executable, "-m", "wikireply", "reply", "--help"],
            [sys.executable, "-m", "wikireply", "edit", "--help"],
        ]
        for cmd in commands:
            with self.subTest(cmd=" ".join(cmd[1:])):
                code, stdout, stderr = self.run_cmd(cmd, extra_env={"PYTHONPATH": str(SRC_ROOT)})
                self.assertEqual(code, 0, msg=f"Command failed: {' '.join(cmd)}\nstdout={stdout}\nstderr={stderr}")

    def test_version_and_unknown_command(self):
        code, stdout, _ = run_main(["--version"])
        self.assertEqual(code, 0)
        self.assertIn(__version__, stdout)

        code, _, stderr = run_main(["bogus"])
        self.assertEqual(code, 2)
        self.assertIn("unknown command", stderr)

    def test_transform(self):
        input_path = self.case_dir / "comment.txt"
        output_path = self.case_dir / "comment.wiki"
        input_path.write_text("Hello\n", encoding="utf-8")
        code, _, stderr = run_main(["transform", str(input_path), "-o", str(output_path), "--indentation", ":"])
        self.assertEqual(code, 0, msg=stderr)
        self.assertEqual(output_path.read_text(encoding="utf-8"), ": Hello ~~~~\n")

    def test_transform_error_exit_code(self):
        input_path = self.case_dir / "comment.txt"
        input_path.write_text("Intro\n{|\n|cell\n|}\n", encoding="utf-8")
        code, _, stderr = run_main(["transform", str(input_path), "--indentation", "#"])
        self.assertEqual(code, 2)
        self.assertIn("numberedList-table", stderr)

    def test_locate(self):
        code, stdout, stderr = run_main(["locate", str(self.page), *BOB_ARGS])
        self.assertEqual(code, 0, msg=stderr)
        result = json.loads(stdout)
        self.assertTrue(result["located"])
        self.assertEqual(result["index"], 1)
        self.assertEqual(result["reply_indentation"], "::")

        code, stdout, _ = run_main(["locate", str(self.page), "--author", "Bob", "--timestamp", "01:00, 1 May 2024 (UTC)"])
        self.assertEqual(code, 1)
        self.assertFalse(json.loads(stdout)["located"])

    def test_reply(self):
        output_path = self.case_dir / "out.wiki"
        code, _, stderr = run_main(["reply", str(self.page), *BOB_ARGS, "--reply", "Thanks!", "-o", str(output_path)])
        self.assertEqual(code, 0, msg=stderr)
        self.assertEqual(output_path.read_text(encoding="utf-8"), PAGE + ":: Thanks! ~~~~\n")
        self.assertEqual(self.page.read_text(encoding="utf-8"), PAGE)

    def test_page_without_final_newline(self):
        self.page.write_text(PAGE.rstrip("\n"), encoding="utf-8")
        output_path = self.case_dir / "out.wiki"
        code, _, stderr = run_main(["reply", str(self.page), *BOB_ARGS, "--reply", "Thanks!", "-o", str(output_path)])
        self.assertEqual(code, 0, msg=stderr)
        self.assertEqual(output_path.read_text(encoding="utf-8"), PAGE + ":: Thanks! ~~~~")

        code, _, stderr = run_main(["edit", str(self.page), *BOB_ARGS, "--new-text", "Changed."])
        self.assertEqual(code, 0, msg=stderr)
        self.assertEqual(
            self.page.read_text(encoding="utf-8"),
            PAGE.replace(":First reply.", ": Changed.", 1).rstrip("\n"),
        )

    def test_locate_has_no_section_flag(self):
        with self.assertRaises(SystemExit) as ctx:
            run_main(["locate", str(self.page), *BOB_ARGS, "--in-section"])
        self.assertEqual(ctx.exception.code, 2)

    def test_edit_and_delete(self):
        code, _, stderr = run_main(["edit", str(self.page), *BOB_ARGS, "--new-text", "Changed."])
        self.assertEqual(code, 0, msg=stderr)
        self.assertEqual(
            self.page.read_text(encoding="utf-8"),
            PAGE.replace(":First reply.", ": Changed.", 1),
        )

        self.page.write_text(PAGE, encoding="utf-8")
        code, _, stderr = run_main(["edit", str(self.page), *BOB_ARGS, "--delete"])
        self.assertEqual(code, 0, msg=stderr)
        self.assertNotIn("Bob", self.page.read_text(encoding="utf-8"))

    def test_missing_comment_is_reported(self):
        code, _, stderr = run_main(["reply", str(self.page), "--author", "Zed", "--timestamp", BOB_TS, "--reply", "Hi"])
        self.assertEqual(code, 2)
        self.assertIn("locateComment", stderr)


if __name__ == "__main__":
    unittest.main()
