from __future__ import annotations

import unittest

from ingestion.normalize_item import clean_item


class CleanItemTests(unittest.TestCase):
    def test_strips_markdown_emphasis(self) -> None:
        self.assertEqual(clean_item("**coffee**"), "coffee")
        self.assertEqual(clean_item("__oat milk__"), "oat milk")
        self.assertEqual(clean_item("*toast*"), "toast")
        self.assertEqual(clean_item("_rice_"), "rice")

    def test_strips_bullets_and_ordinals(self) -> None:
        self.assertEqual(clean_item("- eggs"), "eggs")
        self.assertEqual(clean_item("+ eggs"), "eggs")
        self.assertEqual(clean_item("3. eggs "), "eggs")

    def test_nested_markers_reduce_in_one_call(self) -> None:
        self.assertEqual(clean_item("- 1. **eggs**"), "eggs")

    def test_keeps_inner_underscores(self) -> None:
        self.assertEqual(clean_item("snake_case_snack"), "snake_case_snack")

    def test_none_and_blank_become_empty(self) -> None:
        self.assertEqual(clean_item(None), "")
        self.assertEqual(clean_item("   "), "")

    def test_cleaning_is_idempotent(self) -> None:
        samples = [
            "- **Coffee**",
            "1. - _eggs_",
            "  * 2. __bread__  ",
            "- - - nested",
            "**_mixed_**",
            "plain text",
            "10. 20. numbers",
            "",
        ]
        for sample in samples:
            once = clean_item(sample)
            self.assertEqual(clean_item(once), once, msg=sample)


if __name__ == "__main__":
    unittest.main()
