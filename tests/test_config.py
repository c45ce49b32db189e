"""Tests for configuration discovery and merging."""

from __future__ import annotations

import tempfile
import unittest
from pathlib import Path

from gitlab_review.config import ReviewConfig, find_project_config, resolve_config
from gitlab_review.ecosystems import COMPOSER, YARN
from gitlab_review.exceptions import ConfigError


class ResolveConfigTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        base = Path(self._tmp.name)
        self.home = base / "home"
        self.global_dir = self.home / ".config" / "gitlab-review"
        self.global_dir.mkdir(parents=True)
        self.project = base / "projects" / "shop"
        self.cwd = self.project / "web" / "themes"
        self.cwd.mkdir(parents=True)
        self.env = {"HOME": str(self.home)}

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def _resolve(self, overrides=None) -> ReviewConfig:
        return resolve_config(overrides, cwd=self.cwd, env=self.env)

    def test_no_files_gives_defaults(self) -> None:
        config = self._resolve()

        self.assertIsNone(config.instance)
        self.assertEqual(config.ecosystems(), [])
        self.assertEqual(config.timeout, 30.0)
        self.assertEqual(config.sources, ())

    def test_project_file_overrides_global_file(self) -> None:
        (self.global_dir / "config.toml").write_text(
            'instance = "https://gitlab.example.com"\ntoken = "secret"\nproject_id = 1\n'
        )
        (self.project / "gitlab-review.yaml").write_text("project_id: 42\nyarn: true\n")

        config = self._resolve()

        self.assertEqual(config.instance, "https://gitlab.example.com")
        self.assertEqual(config.token, "secret")
        self.assertEqual(config.project_id, 42)
        self.assertTrue(config.yarn)
        self.assertEqual(
            config.sources,
            (self.global_dir / "config.toml", self.project / "gitlab-review.yaml"),
        )

    def test_xdg_config_home_takes_precedence(self) -> None:
        xdg = Path(self._tmp.name) / "xdg" / "gitlab-review"
        xdg.mkdir(parents=True)
        (xdg / "config.json").write_text('{"instance": "https://xdg.example.com"}')
        (self.global_dir / "config.toml").write_text('instance = "https://home.example.com"\n')
        self.env["XDG_CONFIG_HOME"] = str(xdg.parent)

        self.assertEqual(self._resolve().instance, "https://xdg.example.com")

    def test_explicit_flags_override_files_and_unset_flags_do_not(self) -> None:
        (self.project / "gitlab-review.toml").write_text("yarn = true\ncomposer = true\n")

        config = self._resolve({"yarn": False, "composer": None, "ddev-composer": True})

        self.assertFalse(config.yarn)
        self.assertTrue(config.composer)
        self.assertEqual(config.ecosystems(), [(COMPOSER, True)])

    def test_hyphenated_and_string_values_are_accepted(self) -> None:
        (self.project / "gitlab-review.yml").write_text(
            'project_id: "17"\nddev-composer: "true"\nyarn: "false"\n'
        )

        config = self._resolve()

        self.assertEqual(config.project_id, 17)
        self.assertTrue(config.ddev_composer)
        self.assertFalse(config.yarn)

    def test_malformed_file_is_fatal(self) -> None:
        (self.project / "gitlab-review.toml").write_text("instance = \n")

        with self.assertRaises(ConfigError) as caught:
            self._resolve()
        self.assertIn("gitlab-review.toml", str(caught.exception))

    def test_wrong_value_type_is_fatal(self) -> None:
        (self.project / "gitlab-review.json").write_text('{"project_id": "shop"}')

        with self.assertRaises(ConfigError):
            self._resolve()

    def test_non_mapping_file_is_fatal(self) -> None:
        (self.project / "gitlab-review.yaml").write_text("- yarn\n- composer\n")

        with self.assertRaises(ConfigError):
            self._resolve()


class FindProjectConfigTests(unittest.TestCase):
    def test_search_stops_three_parents_up(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp)
            deep = root / "a" / "b" / "c" / "d"
            deep.mkdir(parents=True)
            (root / "gitlab-review.toml").write_text("yarn = true\n")
            (root / "a" / "gitlab-review.toml").write_text("yarn = true\n")

            self.assertEqual(find_project_config(deep), root / "a" / "gitlab-review.toml")
            self.assertIsNone(find_project_config(deep / "e"))

    def test_closest_file_wins(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp)
            child = root / "child"
            child.mkdir()
            (root / "gitlab-review.toml").write_text("")
            (child / "gitlab-review.toml").write_text("")

            self.assertEqual(find_project_config(child), child / "gitlab-review.toml")


class ReviewConfigTests(unittest.TestCase):
    def test_require_remote_names_missing_keys(self) -> None:
        with self.assertRaises(ConfigError) as caught:
            ReviewConfig(instance="https://gitlab.example.com").require_remote()
        self.assertIn("project_id", str(caught.exception))

    def test_ecosystem_selection(self) -> None:
        config = ReviewConfig(yarn=True, composer=True)

        self.assertEqual(config.ecosystems(), [(YARN, False), (COMPOSER, False)])


if __name__ == "__main__":
    unittest.main()
