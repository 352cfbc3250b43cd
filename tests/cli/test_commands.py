"""
Tests for govm CLI commands, run end to end against a temporary store and a
mocked release server.
"""

import pytest

from govm.cli.parser import CLI
from govm.core.platform import PlatformInfo
from govm.toolchain.shim import EXIT_NOT_CONFIGURED, EXIT_NOT_INSTALLED


@pytest.fixture
def govm(govm_root, monkeypatch, workspace):
    """Run the CLI against the test store from inside the workspace."""
    monkeypatch.chdir(workspace)
    monkeypatch.setattr(
        "govm.toolchain.installer.detect_platform",
        lambda: PlatformInfo("linux", "amd64"),
    )

    def _run(*argv):
        return CLI().run(["--root", str(govm_root), *argv])

    return _run


@pytest.fixture
def catalog_config(govm_root):
    """Point the store's config.yaml at the fake release server."""
    govm_root.mkdir(parents=True, exist_ok=True)
    (govm_root / "config.yaml").write_text(
        "catalog_url: https://go.test/dl/?mode=json&include=all\n"
        "download_base: https://go.test/dl/\n"
    )


class TestInstallCommand:
    """Test govm install."""

    def test_first_install_becomes_global(
        self, govm, store, go_dist, catalog_config, capsys
    ):
        """Test install publishes the version, creates shims and sets global."""
        go_dist.add("1.22.0")

        assert govm("install", "1.22.0") == 0

        assert store.is_installed("1.22.0")
        assert store.read_global() == "1.22.0"
        assert (store.shims_dir / "go").exists()
        assert (store.shims_dir / "gofmt").exists()
        assert "Set Go 1.22.0 as the global default" in capsys.readouterr().out

    def test_second_install_keeps_global(self, govm, store, go_dist, catalog_config):
        """Test a later install doesn't move the global default."""
        go_dist.add("1.21.0")
        go_dist.add("1.22.0")

        govm("install", "1.21.0")
        govm("i", "1.22.0")

        assert store.read_global() == "1.21.0"
        assert store.sorted() == ["1.22.0", "1.21.0"]

    def test_install_again_is_cached(self, govm, go_dist, catalog_config, capsys):
        """Test reinstalling reports the existing installation."""
        go_dist.add("1.22.0")
        govm("install", "1.22.0")
        capsys.readouterr()

        assert govm("install", "1.22.0") == 0
        assert "already installed" in capsys.readouterr().out
        assert go_dist.download_count("1.22.0") == 1

    def test_install_unknown_version(self, govm, store, go_dist, catalog_config):
        """Test an unpublished version fails with exit code 1."""
        go_dist.add("1.22.0")

        assert govm("install", "1.99.0") == 1
        assert list(store.list()) == []

    def test_install_malformed_version(self, govm, store):
        """Test a malformed version fails without touching the store."""
        assert govm("install", "latest") == 1
        assert list(store.list()) == []


class TestUninstallCommand:
    """Test govm uninstall."""

    def test_uninstall(self, govm, store, fake_install):
        """Test a non-default version is removed."""
        fake_install("1.21.0")
        fake_install("1.22.0")
        store.write_global("1.22.0")

        assert govm("uninstall", "1.21.0") == 0
        assert store.sorted() == ["1.22.0"]

    def test_uninstall_global_refused(self, govm, store, fake_install):
        """Test the global default needs --force."""
        fake_install("1.22.0")
        store.write_global("1.22.0")

        assert govm("rm", "1.22.0") == 1
        assert store.is_installed("1.22.0")

    def test_uninstall_global_forced_clears_default(self, govm, store, fake_install):
        """Test --force removes the version and clears the default."""
        fake_install("1.22.0")
        store.write_global("1.22.0")

        assert govm("uninstall", "1.22.0", "--force") == 0
        assert not store.is_installed("1.22.0")
        assert store.read_global() is None

    def test_uninstall_missing(self, govm):
        """Test removing an absent version fails."""
        assert govm("uninstall", "1.22.0") == 1


class TestSelectionCommands:
    """Test use, global and local."""

    def test_use_installs_and_sets_global(self, govm, store, go_dist, catalog_config):
        """Test use installs a missing version and selects it."""
        go_dist.add("1.21.0")
        go_dist.add("1.22.0")
        govm("install", "1.21.0")

        assert govm("use", "1.22.0") == 0

        assert store.is_installed("1.22.0")
        assert store.read_global() == "1.22.0"

    def test_use_local(self, govm, store, fake_install, workspace):
        """Test use --local writes .go-version in the working directory."""
        fake_install("1.22.0")

        assert govm("use", "1.22.0", "--local") == 0
        assert (workspace / ".go-version").read_text() == "1.22.0\n"

    def test_global_show(self, govm, store, capsys):
        """Test global without arguments prints the default."""
        assert govm("global") == 1
        assert "No global version set" in capsys.readouterr().out

        store.write_global("1.22.0")
        assert govm("global") == 0
        assert capsys.readouterr().out.strip() == "1.22.0"

    def test_global_set(self, govm, store, fake_install):
        """Test global sets an installed version."""
        fake_install("1.21.0")

        assert govm("global", "go1.21.0") == 0
        assert store.read_global() == "1.21.0"

    def test_global_requires_installed(self, govm, store):
        """Test global refuses versions that are not installed."""
        assert govm("global", "1.21.0") == 1
        assert store.read_global() is None

    def test_local(self, govm, fake_install, workspace):
        """Test local writes the marker."""
        fake_install("1.21.0")

        assert govm("local", "1.21.0") == 0
        assert (workspace / ".go-version").read_text() == "1.21.0\n"

    def test_local_requires_installed(self, govm, workspace):
        """Test local refuses versions that are not installed."""
        assert govm("local", "1.21.0") == 1
        assert not (workspace / ".go-version").exists()


class TestInspectionCommands:
    """Test version, versions, which and list-remote."""

    def test_version_reports_source(self, govm, fake_install, workspace, capsys):
        """Test version prints the resolved version and its marker."""
        fake_install("1.22.0")
        (workspace / ".go-version").write_text("1.22.0")

        assert govm("version") == 0
        out = capsys.readouterr().out
        assert "1.22.0" in out
        assert str(workspace / ".go-version") in out

    def test_version_unconfigured(self, govm, capsys):
        """Test version fails when nothing is configured."""
        assert govm("version") == 1
        assert "No Go version configured" in capsys.readouterr().out

    def test_version_not_installed(self, govm, workspace, capsys):
        """Test version warns when the resolved version is missing."""
        (workspace / ".go-version").write_text("1.22.0")

        assert govm("version") == 0
        assert "not installed" in capsys.readouterr().err

    def test_versions_marks_current_and_global(
        self, govm, store, fake_install, workspace, capsys
    ):
        """Test versions lists newest first with markers."""
        fake_install("1.20.0")
        fake_install("1.22.0")
        fake_install("1.21.0")
        store.write_global("1.20.0")
        (workspace / ".go-version").write_text("1.21.0")

        assert govm("versions") == 0

        lines = capsys.readouterr().out.splitlines()
        assert lines == ["  1.22.0", "* 1.21.0", "  1.20.0 (global)"]

    def test_versions_empty(self, govm, capsys):
        """Test versions on an empty store."""
        assert govm("ls") == 0
        assert "No Go versions installed" in capsys.readouterr().out

    def test_which(self, govm, store, fake_install, capsys):
        """Test which prints the binary the shim would run."""
        fake_install("1.22.0")
        store.write_global("1.22.0")

        assert govm("which", "gofmt") == 0
        assert capsys.readouterr().out.strip() == str(store.bin_path("1.22.0", "gofmt"))

    def test_which_not_installed(self, govm, workspace):
        """Test which fails for a missing version."""
        (workspace / ".go-version").write_text("1.22.0")
        assert govm("which") == 1

    def test_list_remote(self, govm, store, fake_install, go_dist, catalog_config, capsys):
        """Test list-remote shows stable releases, marking installed ones."""
        go_dist.add("1.21.0")
        go_dist.add("1.22.0")
        go_dist.add("1.23rc1", stable=False)
        fake_install("1.21.0")

        assert govm("list-remote") == 0

        out = capsys.readouterr().out
        assert "1.22.0" in out
        assert "1.21.0 (installed)" in out
        assert "1.23rc1" not in out

    def test_list_remote_all_and_limit(self, govm, go_dist, catalog_config, capsys):
        """Test --all includes pre-releases and --limit truncates."""
        go_dist.add("1.21.0")
        go_dist.add("1.22.0")
        go_dist.add("1.23rc1", stable=False)

        assert govm("ls-remote", "--all", "--limit", "2") == 0

        lines = [line.strip() for line in capsys.readouterr().out.splitlines()[1:]]
        assert lines == ["1.23rc1", "1.22.0"]


class TestExecAndRehash:
    """Test exec and rehash."""

    def test_exec_not_configured(self, govm):
        """Test exec returns the dispatcher's not-configured code."""
        assert govm("exec", "go", "version") == EXIT_NOT_CONFIGURED

    def test_exec_not_installed(self, govm, workspace):
        """Test exec returns the dispatcher's not-installed code."""
        (workspace / ".go-version").write_text("1.22.0")
        assert govm("exec", "go", "version") == EXIT_NOT_INSTALLED

    def test_exec_replaces_process(self, govm, store, fake_install, monkeypatch):
        """Test exec hands the arguments to the resolved binary."""
        fake_install("1.22.0")
        store.write_global("1.22.0")
        captured = []

        def fake_execve(path, argv, env):
            captured.append(argv)
            raise SystemExit(0)

        monkeypatch.setattr("os.execve", fake_execve)

        with pytest.raises(SystemExit):
            govm("exec", "go", "vet", "-json", "./...")

        assert captured[0][1:] == ["vet", "-json", "./..."]

    def test_exec_keeps_leading_double_dash(self, govm, store, fake_install, monkeypatch):
        """Test a leading '--' reaches the binary."""
        fake_install("1.22.0")
        store.write_global("1.22.0")
        captured = []

        def fake_execve(path, argv, env):
            captured.append(argv)
            raise SystemExit(0)

        monkeypatch.setattr("os.execve", fake_execve)

        with pytest.raises(SystemExit):
            govm("exec", "go", "--", "-x")

        assert captured[0][1:] == ["--", "-x"]

    def test_rehash(self, govm, store):
        """Test rehash writes both shims."""
        assert govm("rehash") == 0
        assert (store.shims_dir / "go").exists()
        assert (store.shims_dir / "gofmt").exists()


class TestPruneCommand:
    """Test govm prune."""

    @pytest.fixture
    def four_versions(self, store, fake_install):
        for version in ("1.19.0", "1.20.0", "1.21.0", "1.22.0"):
            fake_install(version)
        store.write_global("1.22.0")

    def test_prune_yes(self, govm, store, four_versions):
        """Test prune removes versions outside --keep."""
        assert govm("prune", "--keep", "2", "--yes") == 0
        assert store.sorted() == ["1.22.0", "1.21.0"]

    def test_prune_dry_run(self, govm, store, four_versions, capsys):
        """Test --dry-run lists candidates and removes nothing."""
        assert govm("prune", "--keep", "2", "--dry-run") == 0

        out = capsys.readouterr().out
        assert "1.19.0" in out
        assert "DRY RUN" in out
        assert len(store.sorted()) == 4

    def test_prune_declined(self, govm, store, four_versions, monkeypatch):
        """Test answering no keeps everything."""
        monkeypatch.setattr("builtins.input", lambda prompt: "n")

        assert govm("prune", "--keep", "1") == 0
        assert len(store.sorted()) == 4

    def test_prune_confirmed(self, govm, store, four_versions, monkeypatch):
        """Test answering yes prunes."""
        monkeypatch.setattr("builtins.input", lambda prompt: "y")

        assert govm("prune", "--keep", "3") == 0
        assert store.sorted() == ["1.22.0", "1.21.0", "1.20.0"]

    def test_prune_spares_referenced(self, govm, store, four_versions, tmp_path):
        """Test versions named by markers under --search-root survive."""
        project = tmp_path / "projects" / "legacy"
        project.mkdir(parents=True)
        (project / ".go-version").write_text("1.19.0\n")

        assert govm(
            "prune", "--keep", "0", "--search-root", str(tmp_path / "projects"), "--yes"
        ) == 0

        assert store.sorted() == ["1.22.0", "1.19.0"]

    def test_prune_nothing(self, govm, store, fake_install, capsys):
        """Test prune with nothing to do."""
        fake_install("1.22.0")

        assert govm("prune") == 0
        assert "Nothing to prune" in capsys.readouterr().out

    def test_prune_negative_keep(self, govm):
        """Test negative --keep is rejected."""
        assert govm("prune", "--keep", "-1") == 1
