"""
Unit tests for the repository analyzer.
"""

import unittest
from unittest.mock import AsyncMock, MagicMock

from deploylabs.gcp_deploy_mcp_server.api.analyze import (
    InvalidReferenceError,
    analyze_repository,
    extract_dependency_version,
    has_dependency,
    is_umbrella_project,
    parse_manifest,
    parse_repository_reference,
)
from deploylabs.gcp_deploy_mcp_server.utils.github import NotFoundError, RateLimitedError

SAMPLE_MIX_EXS = """
defmodule MyShop.MixProject do
  use Mix.Project

  def project do
    [
      app: :my_shop,
      version: "0.1.0",
      elixir: "~> 1.15",
      elixirc_paths: elixirc_paths(Mix.env()),
      start_permanent: Mix.env() == :prod,
      aliases: aliases(),
      deps: deps()
    ]
  end

  defp deps do
    [
      {:phoenix, "~> 1.7.14"},
      {:phoenix_ecto, "~> 4.5"},
      {:ecto_sql, "~> 3.10"},
      {:postgrex, ">= 0.0.0"},
      {:phoenix_live_view, "~> 0.20.17"},
      {:swoosh, "~> 1.5"},
      {:gettext, "~> 0.20"},
      {:jason, "~> 1.2"}
    ]
  end
end
"""

UMBRELLA_MIX_EXS = """
defmodule Platform.Umbrella.MixProject do
  use Mix.Project

  def project do
    [
      apps_path: "apps",
      version: "0.1.0",
      deps: []
    ]
  end
end
"""


def _mock_fetcher(repo_info=None, manifest=SAMPLE_MIX_EXS):
    fetcher = MagicMock()
    fetcher.fetch_repo_info = AsyncMock(return_value=repo_info or {"default_branch": "main"})
    fetcher.fetch_file = AsyncMock(return_value=manifest)
    return fetcher


class TestParseRepositoryReference(unittest.TestCase):
    """Tests for parsing GitHub URLs."""

    def test_plain_url(self):
        reference = parse_repository_reference("https://github.com/phoenixframework/phoenix")
        self.assertEqual(reference.owner, "phoenixframework")
        self.assertEqual(reference.repo, "phoenix")

    def test_git_suffix_is_stripped(self):
        reference = parse_repository_reference("https://github.com/owner/repo.git")
        self.assertEqual(reference.repo, "repo")

    def test_www_host_and_extra_segments(self):
        reference = parse_repository_reference("https://www.github.com/owner/repo/tree/develop/lib")
        self.assertEqual((reference.owner, reference.repo), ("owner", "repo"))

    def test_surrounding_whitespace(self):
        reference = parse_repository_reference("  https://github.com/owner/repo  ")
        self.assertEqual((reference.owner, reference.repo), ("owner", "repo"))

    def test_invalid_urls(self):
        invalid = [
            "",
            "   ",
            None,
            42,
            "not a url",
            "https://gitlab.com/owner/repo",
            "https://github.com/owner",
            "https://github.com/",
            "https://github.com/owner/.git",
            "https://notgithub.com/owner/repo",
        ]
        for url in invalid:
            with self.subTest(url=url):
                with self.assertRaises(InvalidReferenceError):
                    parse_repository_reference(url)

    def test_error_kind(self):
        with self.assertRaises(InvalidReferenceError) as cm:
            parse_repository_reference("https://example.com/owner/repo")
        self.assertEqual(cm.exception.kind, "invalid_github_url")


class TestParseManifest(unittest.TestCase):
    """Tests for mix.exs parsing."""

    def test_sample_manifest(self):
        facts = parse_manifest(SAMPLE_MIX_EXS)

        self.assertEqual(facts.name, "my_shop")
        self.assertEqual(facts.elixir_version, "1.15")
        self.assertEqual(facts.phoenix_version, "1.7.14")
        self.assertEqual(facts.live_view_version, "0.20.17")
        self.assertTrue(facts.has_ecto)
        self.assertTrue(facts.has_live_view)
        self.assertTrue(facts.has_swoosh)
        self.assertTrue(facts.has_gettext)
        self.assertFalse(facts.has_oban)

    def test_empty_manifest(self):
        for content in ("", None):
            with self.subTest(content=content):
                facts = parse_manifest(content)
                self.assertIsNone(facts.name)
                self.assertIsNone(facts.elixir_version)
                self.assertIsNone(facts.phoenix_version)
                self.assertFalse(facts.has_ecto)
                self.assertFalse(facts.has_live_view)

    def test_manifest_without_dependencies(self):
        facts = parse_manifest('def project do\n  [app: :plain, elixir: "~> 1.18"]\nend\n')

        self.assertEqual(facts.name, "plain")
        self.assertEqual(facts.elixir_version, "1.18")
        self.assertIsNone(facts.phoenix_version)
        self.assertFalse(facts.has_ecto)

    def test_plain_ecto_counts_as_ecto(self):
        self.assertTrue(parse_manifest('{:ecto, "~> 3.11"}').has_ecto)

    def test_prefix_dependency_names_also_match(self):
        # :phoenix_live_view contains :phoenix, and :ecto_sql contains :ecto
        content = '{:phoenix_live_view, "~> 0.20"}'
        self.assertTrue(has_dependency(content, "phoenix"))
        self.assertIsNone(extract_dependency_version(content, "phoenix"))

    def test_dependency_without_pessimistic_version(self):
        self.assertIsNone(extract_dependency_version('{:phoenix, ">= 1.7.0"}', "phoenix"))

    def test_umbrella_detection(self):
        self.assertTrue(is_umbrella_project(UMBRELLA_MIX_EXS))
        self.assertTrue(is_umbrella_project("in_umbrella: true"))
        self.assertFalse(is_umbrella_project(SAMPLE_MIX_EXS))


class TestAnalyzeRepository(unittest.IsolatedAsyncioTestCase):
    """Tests for analyze_repository."""

    async def test_analyze_repository(self):
        fetcher = _mock_fetcher(repo_info={"default_branch": "develop"})

        result = await analyze_repository("https://github.com/acme/my_shop", fetcher)

        fetcher.fetch_repo_info.assert_awaited_once_with("acme", "my_shop")
        fetcher.fetch_file.assert_awaited_once_with("acme", "my_shop", "mix.exs", "develop")
        self.assertEqual(result.name, "my_shop")
        self.assertEqual(result.repo_url, "https://github.com/acme/my_shop")
        self.assertEqual(result.default_branch, "develop")
        self.assertFalse(result.is_umbrella)

    async def test_missing_default_branch_falls_back_to_main(self):
        fetcher = _mock_fetcher(repo_info={"name": "my_shop"})

        result = await analyze_repository("https://github.com/acme/my_shop", fetcher)

        self.assertEqual(result.default_branch, "main")
        fetcher.fetch_file.assert_awaited_once_with("acme", "my_shop", "mix.exs", "main")

    async def test_umbrella_project(self):
        fetcher = _mock_fetcher(manifest=UMBRELLA_MIX_EXS)

        result = await analyze_repository("https://github.com/acme/platform", fetcher)

        self.assertTrue(result.is_umbrella)
        self.assertIsNone(result.name)

    async def test_invalid_url_does_not_fetch(self):
        fetcher = _mock_fetcher()

        with self.assertRaises(InvalidReferenceError):
            await analyze_repository("https://gitlab.com/acme/my_shop", fetcher)

        fetcher.fetch_repo_info.assert_not_awaited()

    async def test_fetcher_errors_propagate(self):
        for error in (NotFoundError("missing"), RateLimitedError("slow down")):
            with self.subTest(error=error):
                fetcher = _mock_fetcher()
                fetcher.fetch_repo_info = AsyncMock(side_effect=error)

                with self.assertRaises(type(error)):
                    await analyze_repository("https://github.com/acme/my_shop", fetcher)

                fetcher.fetch_file.assert_not_awaited()


if __name__ == "__main__":
    unittest.main()
