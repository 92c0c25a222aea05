import io
import os
import shutil
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from titools.artifacts import DEFAULT_ARTIFACTS
from titools.blocks import add_or_update_block
from titools.cli import _format_http_error, build_parser, main
from titools.config import BLOCK_END, BLOCK_START
from titools.errors import PreconditionError, TitoolsError, TitoolsHTTPError
from titools.prompts import CANCELLED


def _make_source(root: Path) -> Path:
    for name in DEFAULT_ARTIFACTS.current_skills():
        d = root / "skills" / name
        d.mkdir(parents=True)
        (d / "SKILL.md").write_text(f"# {name}\n", encoding="utf-8")
    (root / "agents").mkdir()
    for name in DEFAULT_ARTIFACTS.current_agents():
        (root / "agents" / f"{name}.md").write_text(f"# {name}\n", encoding="utf-8")
    return root


def _listing(directory: Path) -> list[str]:
    if not directory.exists():
        return []
    return sorted(p.name for p in directory.iterdir())


class _Workspace(unittest.TestCase):
    """Temporary home, project and source checkout; runs with cwd set to a neutral directory."""

    def setUp(self) -> None:
        td = tempfile.TemporaryDirectory()
        self.addCleanup(td.cleanup)
        self.root = Path(td.name).resolve()
        self.home = self.root / "home"
        self.home.mkdir()
        self.project = self.root / "project"
        self.project.mkdir()
        self.source = _make_source(self.root / "checkout")
        self.elsewhere = self.root / "elsewhere"
        self.elsewhere.mkdir()

        env = patch.dict(os.environ, {"TITOOLS_CONFIG_PATH": str(self.root / "config.json")})
        env.start()
        self.addCleanup(env.stop)
        for key in ("TITOOLS_SOURCE_DIR", "TITOOLS_API_URL", "TITOOLS_TIMEOUT_S"):
            os.environ.pop(key, None)

        home = patch("titools.cli._home_dir", return_value=self.home)
        home.start()
        self.addCleanup(home.stop)

        self.chdir(self.elsewhere)

    def chdir(self, path: Path) -> None:
        old = os.getcwd()
        os.chdir(path)
        self.addCleanup(os.chdir, old)

    def make_titanium_project(self) -> None:
        (self.project / "tiapp.xml").write_text(
            "<ti:app><sdk-version>12.5.1.GA</sdk-version></ti:app>\n", encoding="utf-8"
        )

    def run_cli(self, *argv: str) -> tuple[int, str, str]:
        with (
            patch("sys.stdout", new=io.StringIO()) as stdout,
            patch("sys.stderr", new=io.StringIO()) as stderr,
        ):
            rc = main(list(argv))
        return rc, stdout.getvalue(), stderr.getvalue()


class TestSync(_Workspace):
    def test_sync_without_installed_skills_fails(self) -> None:
        self.make_titanium_project()

        rc, _, err = self.run_cli("sync", str(self.project))

        self.assertEqual(rc, 1)
        self.assertIn("error: Skills not installed", err)

    def test_sync_outside_titanium_project_fails(self) -> None:
        rc, _, err = self.run_cli("sync", str(self.project))

        self.assertEqual(rc, 1)
        self.assertIn("Not a Titanium project (no tiapp.xml)", err)

    def test_forced_sync_updates_only_files_that_have_a_block(self) -> None:
        self.make_titanium_project()
        (self.home / ".agents" / "skills" / "ti-expert").mkdir(parents=True)
        claude = self.project / "CLAUDE.md"
        claude.write_text(f"# Rules\n\n{BLOCK_START}\nstale\n{BLOCK_END}\n\nFooter\n", encoding="utf-8")
        agents = self.project / "AGENTS.md"
        agents.write_text("# Agents\n", encoding="utf-8")

        rc, out, _ = self.run_cli("sync", str(self.project), "--force")

        self.assertEqual(rc, 0)
        self.assertIn("Sync complete! Updated: CLAUDE.md", out)
        self.assertNotIn("AGENTS.md", out.split("Sync complete!")[1])
        self.assertEqual(agents.read_text(encoding="utf-8"), "# Agents\n")
        text = claude.read_text(encoding="utf-8")
        self.assertNotIn("stale", text)
        self.assertIn("~/.claude/skills/ti-expert/SKILL.md", text)
        self.assertTrue(text.startswith("# Rules\n\n"))
        self.assertTrue(text.endswith("\n\nFooter\n"))
        self.assertFalse((self.project / "GEMINI.md").exists())

    def test_forced_sync_without_blocks_writes_claude_md(self) -> None:
        self.make_titanium_project()
        (self.home / ".agents" / "skills" / "ti-expert").mkdir(parents=True)

        rc, out, _ = self.run_cli("sync", str(self.project), "-f")

        self.assertEqual(rc, 0)
        self.assertIn("Updated: CLAUDE.md", out)
        self.assertIn(BLOCK_START, (self.project / "CLAUDE.md").read_text(encoding="utf-8"))

    def test_interactive_sync_moves_block_between_files(self) -> None:
        self.make_titanium_project()
        (self.home / ".agents" / "skills" / "ti-expert").mkdir(parents=True)
        claude = self.project / "CLAUDE.md"
        claude.write_text(f"# Rules\n\n{BLOCK_START}\nstale-index\n{BLOCK_END}\n", encoding="utf-8")

        with patch("titools.cli.select_many", return_value=["AGENTS.md"]) as picker:
            rc, out, _ = self.run_cli("sync", str(self.project))

        self.assertEqual(rc, 0)
        offered = {c.value: c.checked for c in picker.call_args.args[1]}
        self.assertEqual(offered, {"AGENTS.md": False, "CLAUDE.md": True, "GEMINI.md": False})
        self.assertIn("Updated: AGENTS.md", out)
        self.assertIn("Cleaned: CLAUDE.md", out)
        self.assertEqual(claude.read_text(encoding="utf-8"), "# Rules\n")
        self.assertIn(BLOCK_START, (self.project / "AGENTS.md").read_text(encoding="utf-8"))

    def test_cancelled_sync_changes_nothing(self) -> None:
        self.make_titanium_project()
        (self.home / ".agents" / "skills" / "ti-expert").mkdir(parents=True)

        with patch("titools.cli.select_many", return_value=CANCELLED):
            rc, out, _ = self.run_cli("sync", str(self.project))

        self.assertEqual(rc, 0)
        self.assertIn("Cancelled.", out)
        self.assertEqual(_listing(self.project), ["tiapp.xml"])

    def test_local_skills_are_referenced_with_project_path(self) -> None:
        self.make_titanium_project()
        (self.project / ".claude" / "skills" / "ti-expert").mkdir(parents=True)

        rc, _, _ = self.run_cli("sync", str(self.project), "--force")

        self.assertEqual(rc, 0)
        text = (self.project / "CLAUDE.md").read_text(encoding="utf-8")
        self.assertIn("`./.claude/skills/ti-expert/SKILL.md`", text)

    def test_forced_sync_with_project_local_skills(self) -> None:
        self.make_titanium_project()
        for name in DEFAULT_ARTIFACTS.current_skills():
            (self.project / ".agents" / "skills" / name).mkdir(parents=True)
        before, after = "# Team rules\n\nUse tabs.\n\n", "\n\n## Release notes\nkeep\n"
        claude = self.project / "CLAUDE.md"
        claude.write_text(f"{before}{BLOCK_START}\nstale-index\n{BLOCK_END}{after}", encoding="utf-8")
        agents = self.project / "AGENTS.md"
        agents.write_text("# Agents\n", encoding="utf-8")

        rc, out, err = self.run_cli("sync", str(self.project), "--force")

        self.assertEqual(rc, 0, err)
        self.assertEqual(_listing(self.home), [])
        summary = out.split("Sync complete!")[1]
        self.assertEqual(summary.strip(), "Updated: CLAUDE.md")
        self.assertNotIn("Cleaned:", out)
        text = claude.read_text(encoding="utf-8")
        self.assertTrue(text.startswith(before + BLOCK_START))
        self.assertTrue(text.endswith(BLOCK_END + after))
        self.assertNotIn("stale-index", text)
        self.assertEqual(agents.read_text(encoding="utf-8"), "# Agents\n")

    def test_one_failing_file_does_not_stop_the_others(self) -> None:
        self.make_titanium_project()
        (self.home / ".agents" / "skills" / "ti-expert").mkdir(parents=True)
        for name in ("AGENTS.md", "CLAUDE.md"):
            (self.project / name).write_text(f"# {name}\n\n{BLOCK_START}\nstale-index\n{BLOCK_END}\n", encoding="utf-8")

        def _fail_agents(path: Path, content: str, **kwargs) -> bool:
            if path.name == "AGENTS.md":
                raise PermissionError(13, "Permission denied", str(path))
            return add_or_update_block(path, content, **kwargs)

        with patch("titools.cli.add_or_update_block", side_effect=_fail_agents):
            rc, out, err = self.run_cli("sync", str(self.project), "--force")

        self.assertEqual(rc, 0)
        self.assertIn("Failed to sync AGENTS.md", err)
        self.assertIn("Sync complete! Updated: CLAUDE.md", out)
        self.assertNotIn("stale-index", (self.project / "CLAUDE.md").read_text(encoding="utf-8"))
        self.assertIn("stale-index", (self.project / "AGENTS.md").read_text(encoding="utf-8"))

    def test_non_utf8_instruction_file_is_reported_and_skipped(self) -> None:
        self.make_titanium_project()
        (self.home / ".agents" / "skills" / "ti-expert").mkdir(parents=True)
        (self.project / "AGENTS.md").write_bytes(b"caf\xe9\n")

        rc, out, err = self.run_cli("sync", str(self.project), "--force")

        self.assertEqual(rc, 0)
        self.assertIn("Failed to sync AGENTS.md: AGENTS.md is not UTF-8 text", err)
        self.assertIn("Updated: CLAUDE.md", out)
        self.assertEqual((self.project / "AGENTS.md").read_bytes(), b"caf\xe9\n")
        self.assertIn(BLOCK_START, (self.project / "CLAUDE.md").read_text(encoding="utf-8"))



class TestUpdate(_Workspace):
    def test_update_replaces_legacy_skill_from_source_dir(self) -> None:
        (self.home / ".agents" / "skills" / "alloy-expert").mkdir(parents=True)

        rc, out, err = self.run_cli("update", "--source-dir", str(self.source))

        self.assertEqual(rc, 0, err)
        skills = _listing(self.home / ".agents" / "skills")
        self.assertIn("ti-expert", skills)
        self.assertNotIn("alloy-expert", skills)
        self.assertIn("removed legacy: alloy-expert", out)
        self.assertIn("Update complete!", out)

    def test_update_with_nothing_installed_fails(self) -> None:
        rc, _, err = self.run_cli("update", "--source-dir", str(self.source))

        self.assertEqual(rc, 1)
        self.assertIn("No skills installed at this location", err)

    def test_up_to_date_only_cleans_legacy(self) -> None:
        skills = self.home / ".agents" / "skills"
        for name in DEFAULT_ARTIFACTS.current_skills():
            (skills / name).mkdir(parents=True)
        (self.home / ".claude" / "agents").mkdir(parents=True)
        (self.home / ".claude" / "agents" / "ti-researcher.md").write_text("x", encoding="utf-8")

        with patch("titools.cli.SourceClient") as mock_client_cls:
            client = mock_client_cls.return_value.__enter__.return_value
            client.check_for_update.return_value = False
            rc, out, _ = self.run_cli("update")

        self.assertEqual(rc, 0)
        self.assertIn("Already up to date", out)
        self.assertIn("removed legacy: ti-researcher", out)
        client.download_archive.assert_not_called()
        self.assertEqual(_listing(self.home / ".claude" / "agents"), [])

    def test_download_failure_reports_repository(self) -> None:
        (self.home / ".agents" / "skills" / "ti-expert").mkdir(parents=True)

        with patch("titools.cli.SourceClient") as mock_client_cls:
            client = mock_client_cls.return_value.__enter__.return_value
            client.check_for_update.return_value = True
            client.download_archive.side_effect = TitoolsError("Download failed: offline")
            rc, out, err = self.run_cli("update")

        self.assertEqual(rc, 1)
        self.assertIn("Update failed", err)
        self.assertIn("Download failed: offline", err)
        self.assertIn("You can try manually installing from: https://github.com/macCesar/titools", out)

    def test_update_refreshes_existing_instruction_files(self) -> None:
        self.make_titanium_project()
        self.chdir(self.project)
        (self.home / ".agents" / "skills" / "ti-expert").mkdir(parents=True)
        (self.project / "GEMINI.md").write_text("# Gemini\n", encoding="utf-8")

        rc, out, _ = self.run_cli("update", "--source-dir", str(self.source))

        self.assertEqual(rc, 0)
        self.assertIn("Updated: GEMINI.md", out)
        self.assertFalse((self.project / "CLAUDE.md").exists())


class TestInstall(_Workspace):
    def test_local_install_links_skills_relative_to_project(self) -> None:
        self.make_titanium_project()
        self.chdir(self.project)
        (self.home / ".claude").mkdir()

        rc, out, err = self.run_cli("install", "--local", "--all", "--source-dir", str(self.source))

        self.assertEqual(rc, 0, err)
        self.assertIn("Mode: Local installation", out)
        link = self.project / ".claude" / "skills" / "ti-expert"
        self.assertTrue(link.is_symlink())
        self.assertEqual(os.readlink(link), os.path.join("..", "..", ".agents", "skills", "ti-expert"))
        self.assertTrue((link / "SKILL.md").is_file())
        self.assertTrue((self.project / ".claude" / "agents" / "ti-pro.md").is_file())
        self.assertEqual(_listing(self.home), [".claude"])
        self.assertEqual(_listing(self.home / ".claude"), [])

    def test_global_install_requires_an_assistant(self) -> None:
        rc, _, err = self.run_cli("install", "--all", "--source-dir", str(self.source))

        self.assertEqual(rc, 1)
        self.assertIn("No AI coding assistants detected", err)

    def test_global_install_skips_agents_without_claude(self) -> None:
        (self.home / ".gemini").mkdir()

        rc, _, _ = self.run_cli("install", "--all", "--source-dir", str(self.source))

        self.assertEqual(rc, 0)
        link = self.home / ".gemini" / "skills" / "ti-expert"
        self.assertEqual(os.readlink(link), str(self.home / ".agents" / "skills" / "ti-expert"))
        self.assertFalse((self.home / ".claude" / "agents" / "ti-pro.md").exists())

    def test_deselected_platform_is_unlinked(self) -> None:
        (self.home / ".claude").mkdir()
        (self.home / ".codex").mkdir()
        self.run_cli("install", "--all", "--source-dir", str(self.source))

        with patch("titools.cli.select_many", return_value=["codex"]):
            rc, out, _ = self.run_cli("install", "--source-dir", str(self.source))

        self.assertEqual(rc, 0)
        self.assertEqual(_listing(self.home / ".claude" / "skills"), [])
        self.assertIn("ti-expert", _listing(self.home / ".codex" / "skills"))
        self.assertIn("Claude Code: skills unlinked", out)

    def test_cancelled_mode_prompt(self) -> None:
        self.make_titanium_project()
        self.chdir(self.project)

        with patch("titools.cli.select_one", return_value=CANCELLED):
            rc, out, _ = self.run_cli("install", "--source-dir", str(self.source))

        self.assertEqual(rc, 0)
        self.assertIn("Cancelled.", out)
        self.assertEqual(_listing(self.project), ["tiapp.xml"])

    def test_custom_path_installs_without_prompts(self) -> None:
        target = self.root / "custom"
        target.mkdir()

        rc, out, _ = self.run_cli("install", "--path", str(target), "--source-dir", str(self.source))

        self.assertEqual(rc, 0)
        self.assertIn("Mode: Custom path", out)
        self.assertTrue((target / ".agents" / "skills" / "ti-expert" / "SKILL.md").is_file())
        self.assertTrue((target / ".codex" / "skills" / "ti-expert").is_symlink())

    def test_skill_missing_from_source_gets_no_link(self) -> None:
        shutil.rmtree(self.source / "skills" / "ti-ui")
        (self.home / ".claude").mkdir()

        rc, out, err = self.run_cli("install", "--all", "--source-dir", str(self.source))

        self.assertEqual(rc, 0, err)
        self.assertIn("warning: skills: could not process ti-ui", out)
        links = self.home / ".claude" / "skills"
        self.assertFalse(os.path.lexists(links / "ti-ui"))
        self.assertTrue((links / "ti-expert").is_symlink())
        self.assertTrue((links / "ti-expert" / "SKILL.md").is_file())
        self.assertNotIn("ti-ui", _listing(self.home / ".agents" / "skills"))



class TestRemove(_Workspace):
    def test_forced_remove_clears_everything(self) -> None:
        (self.home / ".claude").mkdir()
        self.run_cli("install", "--all", "--source-dir", str(self.source))
        self.make_titanium_project()
        claude = self.project / "CLAUDE.md"
        claude.write_text(f"# Mine\n\n{BLOCK_START}\nx\n{BLOCK_END}\n", encoding="utf-8")
        self.chdir(self.project)

        rc, out, _ = self.run_cli("remove", "--force")

        self.assertEqual(rc, 0)
        self.assertIn("Uninstallation complete!", out)
        self.assertEqual(_listing(self.home / ".agents" / "skills"), [])
        self.assertEqual(_listing(self.home / ".claude" / "skills"), [])
        self.assertEqual(_listing(self.home / ".claude" / "agents"), [])
        self.assertEqual(claude.read_text(encoding="utf-8"), "# Mine\n")

    def test_uninstall_alias_with_nothing_installed(self) -> None:
        rc, out, _ = self.run_cli("uninstall")

        self.assertEqual(rc, 0)
        self.assertIn("No skills, agents, symlinks, or knowledge index blocks found.", out)

    def test_local_remove_keeps_home(self) -> None:
        (self.home / ".claude").mkdir()
        self.run_cli("install", "--all", "--source-dir", str(self.source))
        self.make_titanium_project()
        self.chdir(self.project)
        self.run_cli("install", "--local", "--all", "--source-dir", str(self.source))

        rc, _, _ = self.run_cli("remove", "--local", "--force")

        self.assertEqual(rc, 0)
        self.assertEqual(_listing(self.project / ".agents" / "skills"), [])
        self.assertEqual(_listing(self.project / ".claude" / "skills"), [])
        self.assertIn("ti-expert", _listing(self.home / ".agents" / "skills"))
        self.assertEqual(_listing(self.home / ".claude" / "agents"), ["ti-pro.md"])

    def test_non_utf8_instruction_file_does_not_block_removal(self) -> None:
        self.make_titanium_project()
        (self.project / "AGENTS.md").write_bytes(b"caf\xe9\n")
        claude = self.project / "CLAUDE.md"
        claude.write_text(f"# Mine\n\n{BLOCK_START}\nx\n{BLOCK_END}\n", encoding="utf-8")
        self.chdir(self.project)

        rc, out, _ = self.run_cli("remove", "--force")

        self.assertEqual(rc, 0)
        self.assertIn("warning: skipping AGENTS.md: AGENTS.md is not UTF-8 text", out)
        self.assertEqual(claude.read_text(encoding="utf-8"), "# Mine\n")
        self.assertEqual((self.project / "AGENTS.md").read_bytes(), b"caf\xe9\n")



class TestConfigCommand(_Workspace):
    def test_set_then_show(self) -> None:
        rc, out, _ = self.run_cli("config", "set", "--timeout-s", "12", "--source-dir", "/checkout")
        self.assertEqual(rc, 0)
        self.assertIn("Saved:", out)

        rc, out, _ = self.run_cli("config", "show")
        self.assertEqual(rc, 0)
        self.assertIn('"timeout_s": 12.0', out)
        self.assertIn('"source_dir": "/checkout"', out)

        self.run_cli("config", "set", "--source-dir", "")
        _, out, _ = self.run_cli("config", "show")
        self.assertIn('"source_dir": null', out)

    def test_path(self) -> None:
        rc, out, _ = self.run_cli("config", "path")
        self.assertEqual(rc, 0)
        self.assertEqual(out.strip(), str(self.root / "config.json"))

    def test_broken_config_file_is_reported(self) -> None:
        (self.root / "config.json").write_text("{not json", encoding="utf-8")

        rc, out, err = self.run_cli("config", "show")

        self.assertEqual(rc, 1)
        self.assertEqual(out, "")
        self.assertIn("error:", err)
        self.assertIn("config.json is not valid JSON (line 1)", err)



class TestErrors(unittest.TestCase):
    def test_verbose_prints_cause_chain(self) -> None:
        def _raise_nested(*_args, **_kwargs):
            http_err = TitoolsHTTPError(404, '{"message":"Not Found"}')
            inner = TitoolsError("Could not fetch the latest release")
            inner.__cause__ = http_err
            outer = PreconditionError("Skills not installed. Run: titools install")
            outer.__cause__ = inner
            raise outer

        with (
            patch("titools.cli.cmd_sync", side_effect=_raise_nested),
            patch("sys.stderr", new=io.StringIO()) as stderr,
        ):
            rc = main(["sync", "-v"])

        self.assertEqual(rc, 1)
        err = stderr.getvalue()
        self.assertIn("error: Skills not installed", err)
        self.assertIn("error_details:", err)
        self.assertIn("cause[1]: TitoolsError: Could not fetch the latest release", err)
        self.assertIn("cause[2]: TitoolsHTTPError: HTTP 404 Not Found.", err)

    def test_verbose_flag_is_accepted_before_and_after_command(self) -> None:
        self.assertTrue(build_parser().parse_args(["-v", "sync"]).verbose)
        self.assertTrue(build_parser().parse_args(["sync", "--verbose"]).verbose)
        self.assertFalse(build_parser().parse_args(["sync"]).verbose)

    def test_format_rate_limit(self) -> None:
        msg = _format_http_error(TitoolsHTTPError(403, '{"message":"API rate limit exceeded"}'))
        self.assertIn("HTTP 403 Forbidden", msg)
        self.assertIn("API rate limit exceeded", msg)

    def test_format_plain_body(self) -> None:
        self.assertEqual(_format_http_error(TitoolsHTTPError(500, "boom")), "HTTP 500 boom")
        self.assertEqual(_format_http_error(TitoolsHTTPError(502, "")), "HTTP 502")


if __name__ == "__main__":
    unittest.main()
