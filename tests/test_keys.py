import unittest

from prompt_toolkit.key_binding.key_processor import KeyPress
from prompt_toolkit.keys import Keys

from consolenav.keys import (
    ENTER,
    ESCAPE,
    is_printable,
    key_label,
    normalize_key,
    normalize_keys,
)


class NormalizeKeyTests(unittest.TestCase):
    def test_letters_are_case_insensitive(self) -> None:
        self.assertEqual(normalize_key("Q"), "q")
        self.assertEqual(normalize_key("q"), "q")
        self.assertEqual(normalize_key(KeyPress("Q")), "q")

    def test_key_names_and_aliases(self) -> None:
        self.assertIs(normalize_key("escape"), Keys.Escape)
        self.assertIs(normalize_key("Esc"), Keys.Escape)
        self.assertIs(normalize_key("enter"), ENTER)
        self.assertIs(normalize_key("backspace"), Keys.ControlH)
        self.assertIs(normalize_key("left"), Keys.Left)
        self.assertEqual(normalize_key("space"), " ")

    def test_control_characters_map_to_keys(self) -> None:
        self.assertIs(normalize_key("\x1b"), ESCAPE)
        self.assertIs(normalize_key("\r"), ENTER)
        self.assertIs(normalize_key("\x7f"), Keys.ControlH)

    def test_line_feed_is_enter(self) -> None:
        self.assertIs(normalize_key(Keys.ControlJ), ENTER)
        self.assertIs(normalize_key("\n"), ENTER)

    def test_unknown_name_raises(self) -> None:
        with self.assertRaises(ValueError):
            normalize_key("not-a-key")
        with self.assertRaises(TypeError):
            normalize_key(42)  # type: ignore[arg-type]

    def test_normalize_keys_accepts_single_key_and_drops_repeats(self) -> None:
        self.assertEqual(normalize_keys("q"), ("q",))
        self.assertEqual(normalize_keys(["Q", "q", Keys.Escape]), ("q", Keys.Escape))


class KeyHelpersTests(unittest.TestCase):
    def test_is_printable(self) -> None:
        self.assertTrue(is_printable(KeyPress("a")))
        self.assertTrue(is_printable(KeyPress(" ")))
        self.assertFalse(is_printable(KeyPress(Keys.Escape)))
        self.assertFalse(is_printable(KeyPress(Keys.Left)))

    def test_key_label(self) -> None:
        self.assertEqual(key_label("q"), "Q")
        self.assertEqual(key_label(Keys.Escape), "Escape")
        self.assertEqual(key_label(Keys.ControlJ), "Enter")
        self.assertEqual(key_label(" "), "Spacebar")


if __name__ == "__main__":
    unittest.main()
