import random
import threading
import unittest

from prompt_toolkit.keys import Keys

from consolenav.core.collection import PAGE_NOT_FOUND, PageCollection
from consolenav.core.errors import NavigationStateError
from consolenav.core.records import NavigationChoice, Page


def _noop() -> bool:
    return True


def _page(name: str, *choices: NavigationChoice, back_keys=(Keys.Escape,)) -> Page:
    return Page(name, NavigationChoice("Back", back_keys, _noop), choices=choices)


class PageCollectionTests(unittest.TestCase):
    def setUp(self) -> None:
        self.errors: list[str] = []
        self.home = _page(
            "Home",
            NavigationChoice("Settings", ["s"], _noop),
            NavigationChoice("About", ["a"], _noop),
        )
        self.settings = _page("Settings", NavigationChoice("Toggle", ["t"], _noop))
        self.about = _page("About")
        self.collection = PageCollection(
            "main", [self.home, self.settings, self.about], on_error=self.errors.append
        )

    def test_starts_on_first_page_with_its_keys(self) -> None:
        self.assertIs(self.collection.current_page, self.home)
        self.assertEqual(self.collection.depth, 1)
        self.assertEqual(self.collection.current_page_index, 0)
        self.assertEqual(self.collection.current_page_position, 0)
        self.assertEqual(self.collection.dispatch_keys(), frozenset({"s", "a", Keys.Escape}))

    def test_set_current_page_by_name_and_index(self) -> None:
        self.assertTrue(self.collection.set_current_page("Settings"))
        self.assertIs(self.collection.current_page, self.settings)
        self.assertEqual(self.collection.dispatch_keys(), frozenset({"t", Keys.Escape}))
        self.assertTrue(self.collection.set_current_page(2))
        self.assertIs(self.collection.current_page, self.about)
        self.assertEqual(self.collection.current_page_index, 2)
        self.assertEqual(self.collection.current_page_position, 2)
        self.assertEqual(self.collection.depth, 3)

    def test_current_page_index_counts_stack_entries(self) -> None:
        self.collection.set_current_page("Settings")
        self.collection.set_current_page("Home")
        self.assertEqual(self.collection.current_page_index, 2)
        self.assertEqual(self.collection.current_page_position, 0)
        self.collection.roll_back_to_previous_page()
        self.assertEqual(self.collection.current_page_index, 1)
        self.assertEqual(self.collection.current_page_position, 1)

    def test_invalid_targets_leave_stack_untouched(self) -> None:
        self.assertFalse(self.collection.set_current_page("Missing"))
        self.assertFalse(self.collection.set_current_page(3))
        self.assertFalse(self.collection.set_current_page(-1))
        self.assertFalse(self.collection.set_current_page(True))
        self.assertEqual(self.collection.depth, 1)
        self.assertIs(self.collection.current_page, self.home)

    def test_roll_back_rebuilds_dispatch_table(self) -> None:
        self.collection.set_current_page("Settings")
        self.assertTrue(self.collection.roll_back_to_previous_page())
        self.assertIs(self.collection.current_page, self.home)
        self.assertEqual(self.collection.dispatch_keys(), frozenset({"s", "a", Keys.Escape}))

    def test_roll_back_at_root_is_noop(self) -> None:
        self.assertFalse(self.collection.roll_back_to_previous_page())
        self.assertEqual(self.collection.depth, 1)
        self.assertEqual(self.errors, [])

    def test_get_page_index(self) -> None:
        self.assertEqual(self.collection.get_page_index("About"), 2)
        self.assertEqual(self.collection.get_page_index("Nope"), PAGE_NOT_FOUND)

    def test_duplicate_key_keeps_first_action_and_reports(self) -> None:
        fired: list[str] = []
        first = NavigationChoice("First", ["a"], lambda: fired.append("first") or True)
        second = NavigationChoice("Second", ["A"], lambda: fired.append("second") or True)
        collection = PageCollection("dupes", [_page("Home", first, second)], on_error=self.errors.append)

        collection.resolve("a")()

        self.assertEqual(fired, ["first"])
        self.assertEqual(len(self.errors), 1)
        self.assertIn("Offending key A", self.errors[0])

    def test_go_back_key_colliding_with_choice_is_dropped(self) -> None:
        choice_fired: list[bool] = []
        choice = NavigationChoice("Exit", [Keys.Escape], lambda: choice_fired.append(True) or True)
        collection = PageCollection("c", [_page("Home", choice)], on_error=self.errors.append)
        collection.resolve(Keys.Escape)()
        self.assertEqual(choice_fired, [True])
        self.assertEqual(len(self.errors), 1)

    def test_hidden_choices_are_not_dispatched(self) -> None:
        state = {"show": False}
        hidden = NavigationChoice("Secret", ["x"], _noop, lambda: state["show"])
        collection = PageCollection("c", [_page("Home", hidden), _page("Other")])
        self.assertIsNone(collection.resolve("x"))
        state["show"] = True
        collection.refresh_actions()
        self.assertIsNotNone(collection.resolve("x"))

    def test_go_back_keys_registered_even_when_hidden(self) -> None:
        back = NavigationChoice("Back", ["b"], _noop, lambda: False)
        collection = PageCollection("c", [Page("Home", back)])
        self.assertEqual(collection.dispatch_keys(), frozenset({"b"}))

    def test_empty_collection_is_fatal(self) -> None:
        with self.assertRaises(NavigationStateError):
            PageCollection("empty", [])

    def test_duplicate_page_names_rejected(self) -> None:
        with self.assertRaises(ValueError):
            PageCollection("c", [_page("Home"), _page("Home")])

    def test_dispatch_table_matches_top_page_after_random_walk(self) -> None:
        rng = random.Random(7)
        pages = [self.home, self.settings, self.about]
        for _ in range(200):
            if rng.random() < 0.5:
                self.collection.set_current_page(rng.choice([p.name for p in pages]))
            else:
                self.collection.roll_back_to_previous_page()
            top = self.collection.current_page
            expected = {key for choice in top.visible_choices() for key in choice.keys}
            expected.update(top.go_back.keys)
            self.assertEqual(self.collection.dispatch_keys(), frozenset(expected))
            self.assertGreaterEqual(self.collection.depth, 1)

    def test_concurrent_navigation_keeps_stack_and_table_consistent(self) -> None:
        def worker(seed: int) -> None:
            rng = random.Random(seed)
            for _ in range(300):
                if rng.random() < 0.5:
                    self.collection.set_current_page(rng.randrange(3))
                else:
                    self.collection.roll_back_to_previous_page()

        threads = [threading.Thread(target=worker, args=(seed,)) for seed in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        self.assertGreaterEqual(self.collection.depth, 1)
        top = self.collection.current_page
        expected = {key for choice in top.visible_choices() for key in choice.keys}
        expected.update(top.go_back.keys)
        self.assertEqual(self.collection.dispatch_keys(), frozenset(expected))


if __name__ == "__main__":
    unittest.main()
