"""Tests for CleanupGuard and remove_path."""

import os
import threading

from bundlefs import cleanup as cleanup_module
from bundlefs.cleanup import CleanupGuard, remove_path


class TestRemovePath:
    """Test remove_path function."""

    def test_removes_directory_tree(self, tmp_path):
        """Directories are removed recursively."""
        target = tmp_path / "tree"
        (target / "a" / "b").mkdir(parents=True)
        (target / "a" / "b" / "f.txt").write_text("x")
        assert remove_path(str(target)) is True
        assert not target.exists()

    def test_removes_file(self, tmp_path):
        """Files are unlinked."""
        target = tmp_path / "f.txt"
        target.write_text("x")
        assert remove_path(str(target)) is True
        assert not target.exists()

    def test_missing_path_is_not_an_error(self, tmp_path):
        """A missing path counts as removed."""
        assert remove_path(str(tmp_path / "missing")) is True

    def test_failure_is_logged_not_raised(self, tmp_path, mocker):
        """Removal errors are logged and reported as False."""
        target = tmp_path / "tree"
        target.mkdir()
        mocker.patch(
            "bundlefs.cleanup.shutil.rmtree", side_effect=PermissionError("denied")
        )
        warning = mocker.patch.object(cleanup_module.logger, "warning")
        assert remove_path(str(target)) is False
        warning.assert_called_once()


class TestCleanupGuard:
    """Test CleanupGuard class."""

    def test_first_call_removes(self, tmp_path):
        """The first call removes the path and marks the guard done."""
        target = tmp_path / "tree"
        target.mkdir()
        guard = CleanupGuard(str(target))
        assert not guard.done
        guard()
        assert guard.done
        assert not target.exists()

    def test_later_calls_are_noops(self, tmp_path, mocker):
        """Only one removal attempt happens however often the guard is called."""
        target = tmp_path / "tree"
        target.mkdir()
        remove = mocker.patch("bundlefs.cleanup.remove_path", return_value=True)
        guard = CleanupGuard(str(target))
        for _ in range(5):
            guard()
        remove.assert_called_once_with(str(target))

    def test_recreated_path_is_left_alone(self, tmp_path):
        """A path recreated after cleanup is not touched by later calls."""
        target = tmp_path / "tree"
        target.mkdir()
        guard = CleanupGuard(str(target))
        guard()
        target.mkdir()
        guard()
        assert target.exists()

    def test_missing_path(self, tmp_path):
        """Guarding a path that is already gone does not raise."""
        guard = CleanupGuard(str(tmp_path / "missing"))
        guard()
        guard()
        assert guard.done

    def test_removal_error_is_suppressed(self, tmp_path, mocker):
        """A failing removal still marks the guard done and never raises."""
        target = tmp_path / "tree"
        target.mkdir()
        mocker.patch("bundlefs.cleanup.shutil.rmtree", side_effect=OSError("busy"))
        guard = CleanupGuard(str(target))
        guard()
        assert guard.done

    def test_concurrent_calls_remove_once(self, tmp_path, mocker):
        """Racing first calls produce exactly one removal and all wait for it."""
        target = tmp_path / "tree"
        target.mkdir()
        real_remove = cleanup_module.remove_path
        started = threading.Event()
        release = threading.Event()
        calls = []

        def slow_remove(path):
            calls.append(path)
            started.set()
            release.wait(5)
            return real_remove(path)

        mocker.patch("bundlefs.cleanup.remove_path", side_effect=slow_remove)
        guard = CleanupGuard(str(target))
        finished_while_blocked = []

        def worker():
            guard()
            finished_while_blocked.append(not release.is_set())

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for thread in threads:
            thread.start()
        assert started.wait(5)
        release.set()
        for thread in threads:
            thread.join(5)

        assert calls == [str(target)]
        assert not any(finished_while_blocked)
        assert not target.exists()

    def test_context_manager(self, tmp_path):
        """Leaving the with-block runs the guard."""
        target = tmp_path / "f.txt"
        target.write_text("x")
        with CleanupGuard(str(target)) as guard:
            assert os.path.exists(guard.path)
        assert not target.exists()
        assert guard.done

    def test_repr(self, tmp_path):
        """The repr shows the path and state."""
        guard = CleanupGuard(str(tmp_path))
        assert "armed" in repr(guard)
        guard()
        assert "done" in repr(guard)
