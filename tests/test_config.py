from __future__ import annotations

import json
import sys
import tempfile
import unittest
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
SRC_ROOT = REPO_ROOT / "src"
if str(SRC_ROOT) not in sys.path:
    sys.path.insert(0, str(SRC_ROOT))

from wikireply.config import DEFAULT_CONFIG, ENGLISH_WIKIPEDIA, WikitextConfig, config_from_dict, load_config  # noqa: E402


class TestConfig(unittest.TestCase):
    def test_defaults(self):
        self.assertEqual(DEFAULT_CONFIG.user_signature, " ~~~~")
        self.assertEqual(DEFAULT_CONFIG.match_weights.threshold, 2.5)
        self.assertEqual(DEFAULT_CONFIG.outdent_level, 15)

    def test_overrides(self):
        config = config_from_dict(
            {
                "outdent_templates": ["outdent", "od"],
                "closed_discussion_templates": [["Atop"], ["Abot"]],
                "match_weights": {"threshold": 3},
            }
        )
        self.assertEqual(config.outdent_templates, ("outdent", "od"))
        self.assertEqual(config.closed_discussion_templates, (("Atop",), ("Abot",)))
        self.assertEqual(config.match_weights.threshold, 3.0)
        self.assertEqual(config.match_weights.required, 2.0)

    def test_invalid_values(self):
        cases = [
            {"no_such_option": 1},
            {"match_weights": {"bogus": 1}},
            {"match_weights": 5},
            {"indentation_char_mode": "random"},
            {"default_indentation_char": "#"},
        ]
        for overrides in cases:
            with self.subTest(overrides=overrides):
                with self.assertRaises(ValueError):
                    config_from_dict(overrides)

    def test_load_config_with_preset(self):
        case_dir = Path(tempfile.mkdtemp(prefix="config-"))
        path = case_dir / "config.json"
        path.write_text(json.dumps({"preset": "enwiki", "signature_prefix": " -- "}), encoding="utf-8")
        config = load_config(path)
        self.assertIsInstance(config, WikitextConfig)
        self.assertEqual(config.paragraph_templates, ENGLISH_WIKIPEDIA.paragraph_templates)
        self.assertEqual(config.user_signature, " -- ~~~~")

    def test_load_config_rejects_non_objects(self):
        case_dir = Path(tempfile.mkdtemp(prefix="config-"))
        path = case_dir / "config.json"
        path.write_text("[1, 2]", encoding="utf-8")
        with self.assertRaises(ValueError):
            load_config(path)


if __name__ == "__main__":
    unittest.main()
