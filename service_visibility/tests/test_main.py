"""
Tests for the Visibility service wiring and admin command line.
"""

import json

import pytest
from prometheus_client import CollectorRegistry

from shared.config import get_config
from shared.metrics import MetricsCollector
from service_visibility.app.conditions import DictSubjectContext, setting_key
from service_visibility.app.main import VisibilityService, main
from service_visibility.app.persistence import InMemoryStore, JsonFileStore


LEGACY_ITEMS = {
    "post-1": json.dumps([{
        "elType": "section",
        "settings": {"ecl_role_hidden": ["subscriber"], "ecl_enabled": "yes"},
        "elements": [],
    }]),
}


@pytest.fixture
def service():
    """Service over an in-memory store holding one legacy item."""
    return VisibilityService(
        config=get_config(store_backend="memory"),
        store=InMemoryStore(items=LEGACY_ITEMS),
        metrics=MetricsCollector("visibility", CollectorRegistry()),
    )


@pytest.fixture
def store_path(tmp_path):
    """JSON store file holding one legacy item."""
    path = tmp_path / "visibility.json"
    path.write_text(json.dumps({"options": {}, "items": LEGACY_ITEMS}), encoding="utf-8")
    return str(path)


class TestVisibilityService:
    """Test cases for VisibilityService."""

    def test_migrate_then_check(self, service):
        """Test migrated settings drive the role condition."""
        assert service.migration_pending() is True

        report = service.migrate()
        assert report.status.value == "success"
        assert service.migration_pending() is False

        settings = json.loads(json.dumps(service.store.read_item("post-1")))[0]["settings"]
        assert settings[setting_key("show_hide")] == ""

        assert service.check(settings, DictSubjectContext(roles=["subscriber"])).visible is False
        assert service.check(settings, DictSubjectContext(roles=["editor"])).visible is True

    def test_default_modules_registered(self, service):
        """Test the shipped condition modules are wired."""
        names = [module.name for module in service.aggregator.modules]
        assert names == ["user_role", "user_meta"]


class TestCommandLine:
    """Test cases for the admin command line."""

    def test_status(self, store_path, capsys):
        """Test listing pending migrations."""
        assert main(["--store", store_path, "status"]) == 0
        output = json.loads(capsys.readouterr().out)
        assert output == {"pending_versions": ["1.3.0"], "migration_pending": True}

    def test_migrate_twice(self, store_path, capsys):
        """Test a migration followed by a no-op run."""
        assert main(["--store", store_path, "migrate"]) == 0
        first = json.loads(capsys.readouterr().out)
        assert first["status"] == "success"
        assert first["applied_versions"] == ["1.3.0"]

        assert main(["--store", store_path, "migrate"]) == 0
        second = json.loads(capsys.readouterr().out)
        assert second["status"] == "noop"

        assert JsonFileStore(store_path).get("visibility_db_version") == {"1.3.0": True}

    def test_migrate_locked(self, store_path, capsys):
        """Test exit code when another run holds the lock."""
        JsonFileStore(store_path).acquire_lock(60)

        assert main(["--store", store_path, "migrate"]) == 2
        output = json.loads(capsys.readouterr().out)
        assert output["code"] == "MIGRATION_LOCKED"

    def test_check(self, tmp_path, store_path, capsys):
        """Test evaluating one item from JSON files."""
        settings = tmp_path / "settings.json"
        settings.write_text(json.dumps({
            setting_key("enabled"): "yes",
            setting_key("user_meta_enabled"): "yes",
            setting_key("user_meta_options"): ["points"],
            setting_key("user_meta_status"): "is_between",
            setting_key("user_meta_value"): "1",
            setting_key("user_meta_value_2"): "10",
        }), encoding="utf-8")
        context = tmp_path / "context.json"
        context.write_text(json.dumps({"attributes": {"points": "5"}}), encoding="utf-8")

        assert main(["--store", store_path, "check", "--settings", str(settings), "--context", str(context)]) == 0
        output = json.loads(capsys.readouterr().out)
        assert output["visible"] is True
        assert output["module_results"] == {"user_meta": True}

    def test_check_malformed_json(self, tmp_path, store_path, capsys):
        """Test that an unreadable settings file yields a structured error."""
        settings = tmp_path / "settings.json"
        settings.write_text("{broken", encoding="utf-8")
        context = tmp_path / "context.json"
        context.write_text("{}", encoding="utf-8")

        assert main(["--store", store_path, "check", "--settings", str(settings), "--context", str(context)]) == 1
        output = json.loads(capsys.readouterr().out)
        assert output["code"] == "VALIDATION_ERROR"
        assert output["details"] == {"path": str(settings)}

    def test_check_context_not_an_object(self, tmp_path, store_path, capsys):
        """Test that a context file must hold a JSON object."""
        settings = tmp_path / "settings.json"
        settings.write_text("{}", encoding="utf-8")
        context = tmp_path / "context.json"
        context.write_text("[1, 2]", encoding="utf-8")

        assert main(["--store", store_path, "check", "--settings", str(settings), "--context", str(context)]) == 1
        assert json.loads(capsys.readouterr().out)["code"] == "VALIDATION_ERROR"

    def test_invalid_log_level(self, store_path, capsys):
        """Test that an unknown log level is reported instead of crashing."""
        assert main(["--store", store_path, "--log-level", "loud", "status"]) == 1
        output = json.loads(capsys.readouterr().out)
        assert output["code"] == "VALIDATION_ERROR"
        assert output["message"] == "Invalid configuration"


class TestConfig:
    """Test cases for service configuration."""

    def test_log_level_normalized(self):
        assert get_config(log_level=" WARNING ").log_level == "warning"

    def test_log_level_rejected(self):
        with pytest.raises(ValueError):
            get_config(log_level="loud")
