"""Tests for watch_queue.runner."""

from unittest.mock import Mock, patch

from watch_queue.models import Scope
from watch_queue.runner import CLEAR_SCREEN, Runner


class TestRunOnChanges:
    """Tests for Runner.run_on_changes."""

    def test_no_paths_runs_nothing(self, session):
        runner = Runner(session)
        assert runner.run_on_changes([], [], []) == {}

    def test_runs_matching_plugins_only(self, session):
        runner = Runner(session)
        results = runner.run_on_changes(["app/models/user.rb"], [], [])
        assert results == {"rspec": "success"}

    def test_all_categories_count(self, session):
        runner = Runner(session)
        results = runner.run_on_changes([], ["a.js"], ["b.rb"])
        assert results == {"rspec": "success", "eslint": "success"}

    def test_passes_matching_paths(self, session):
        plugin = session.snapshot.plugin("rspec")
        with patch.object(plugin, "run_on_changes", return_value=True) as run:
            Runner(session).run_on_changes(["a.rb", "b.js", "c.rb"], [], [])

        run.assert_called_once_with(["a.rb", "c.rb"])

    def test_respects_scope(self, session):
        session.set_scope(Scope(groups=("frontend",)))
        results = Runner(session).run_on_changes(["a.rb", "b.js"], [], [])
        assert results == {"eslint": "success"}

    def test_failed_plugin_reported(self, session):
        notifier = Mock()
        plugin = session.snapshot.plugin("rspec")
        with patch.object(plugin, "run_on_changes", return_value=False):
            results = Runner(session, notifier=notifier).run_on_changes(["a.rb"], [], [])

        assert results == {"rspec": "failed"}
        notifier.notify.assert_called_once_with("rspec: run_on_changes failed", success=False)

    def test_plugin_exception_is_contained(self, session):
        plugin = session.snapshot.plugin("rspec")
        with patch.object(plugin, "run_on_changes", side_effect=RuntimeError("crash")):
            results = Runner(session).run_on_changes(["a.rb", "b.js"], [], [])

        assert results == {"rspec": "failed", "eslint": "success"}

    def test_config_change_triggers_callback(self, session):
        """Test that touching the configuration file calls the reload hook."""
        on_config_change = Mock()
        runner = Runner(session, on_config_change=on_config_change)

        runner.run_on_changes(["watchqueue.json"], [], [])

        on_config_change.assert_called_once_with()

    def test_other_changes_do_not_trigger_callback(self, session):
        on_config_change = Mock()
        Runner(session, on_config_change=on_config_change).run_on_changes(["a.rb"], [], [])
        on_config_change.assert_not_called()


class TestRunAll:
    """Tests for Runner.run_all."""

    def test_runs_every_scoped_plugin(self, session):
        assert Runner(session).run_all() == {"rspec": "success", "eslint": "success"}

    def test_scope_override(self, session):
        results = Runner(session).run_all(Scope(plugins=("eslint",)))
        assert results == {"eslint": "success"}

    def test_clear_screen(self, session, capsys):
        Runner(session, clear=True).run_all()
        assert CLEAR_SCREEN in capsys.readouterr().out

    def test_no_clear_by_default(self, session, capsys):
        Runner(session).run_all()
        assert CLEAR_SCREEN not in capsys.readouterr().out
