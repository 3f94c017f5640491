"""
Configuration Tests for meshroute
Unit tests for settings validation and the JSON configuration manager
"""

import json
import logging
from dataclasses import asdict

import pytest

import meshroute
from meshroute.algorithms.portpoint import PortPointPathingSolver
from meshroute.shared.configuration import (
    ApplicationSettings, ConfigManager, LoggingSettings, PathingSettings
)
from meshroute.shared.exceptions import ConfigurationError
from meshroute.shared.utils import (
    DEFAULT_COMPONENT_LEVELS, get_component_levels, get_context_logger, setup_logging
)


class TestPathingSettings:
    """Test pathing settings validation"""

    def test_defaults_are_valid(self):
        assert PathingSettings().validate() == []

    def test_negative_weight_is_reported(self):
        errors = PathingSettings(rip_cost=-1.0).validate()
        assert len(errors) == 1
        assert "rip_cost" in errors[0]

    def test_fraction_out_of_range(self):
        errors = PathingSettings(random_rip_fraction=1.5, memory_decay=-0.1).validate()
        assert len(errors) == 2

    def test_infinite_board_score_limits_are_valid(self):
        assert PathingSettings(min_allowed_board_score=float("inf")).validate() == []
        assert PathingSettings(min_allowed_board_score=float("-inf")).validate() == []

    def test_nan_board_score_is_invalid(self):
        assert PathingSettings(min_allowed_board_score=float("nan")).validate()

    def test_settings_are_the_only_source_of_defaults(self, tmp_path):
        """Test that the package defaults come from PathingSettings alone"""
        assert not hasattr(meshroute, "DEFAULT_CONFIG")
        manager = ConfigManager(tmp_path / "meshroute.json")
        assert asdict(manager.get_pathing_settings()) == asdict(meshroute.PathingSettings())


class TestConfigManager:
    """Test loading and saving configuration files"""

    def test_missing_file_uses_defaults(self, tmp_path):
        manager = ConfigManager(tmp_path / "meshroute.json")

        assert manager.settings == ApplicationSettings()
        assert not (tmp_path / "meshroute.json").exists()

    def test_save_and_load_round_trip(self, tmp_path):
        path = tmp_path / "config" / "meshroute.json"
        manager = ConfigManager(path)
        manager.update_pathing_settings(rip_cost=4.0, max_rips=20)
        assert manager.save()

        reloaded = ConfigManager(path)
        assert reloaded.get_pathing_settings().rip_cost == 4.0
        assert reloaded.get_pathing_settings().max_rips == 20

    def test_unknown_keys_are_ignored(self, tmp_path, caplog):
        path = tmp_path / "meshroute.json"
        path.write_text(json.dumps({"pathing": {"rip_cost": 2.0, "warp_speed": 9}}))

        with caplog.at_level(logging.WARNING):
            manager = ConfigManager(path)

        assert manager.settings.pathing.rip_cost == 2.0
        assert "warp_speed" in caplog.text

    def test_corrupt_file_is_reported(self, tmp_path):
        path = tmp_path / "meshroute.json"
        path.write_text("{not json")

        manager = ConfigManager(path)
        assert manager.settings == ApplicationSettings()
        assert not manager.load()

    def test_invalid_pathing_settings_raise(self, tmp_path):
        manager = ConfigManager(tmp_path / "meshroute.json")
        manager.update_pathing_settings(greedy_multiplier=0.0)

        with pytest.raises(ConfigurationError) as exc_info:
            manager.get_pathing_settings()
        assert exc_info.value.error_code == "PATHING_SETTINGS"

    def test_reset_category(self, tmp_path):
        manager = ConfigManager(tmp_path / "meshroute.json")
        manager.update_pathing_settings(rip_cost=1.0)
        manager.reset_category_to_defaults("pathing")
        assert manager.settings.pathing == PathingSettings()

    def test_config_info(self, tmp_path):
        manager = ConfigManager(tmp_path / "meshroute.json")
        info = manager.get_config_info()
        assert info["config_exists"] is False
        assert info["validation_errors"] == {"pathing": [], "logging": []}


class TestLogging:
    """Test logging setup helpers"""

    @pytest.fixture
    def restore_logging(self):
        root = logging.getLogger()
        saved_handlers = list(root.handlers)
        saved_level = root.level
        components = set(DEFAULT_COMPONENT_LEVELS) | {"meshroute.algorithms.portpoint.rip_policy"}
        saved_components = {name: logging.getLogger(name).level for name in components}
        yield
        for handler in root.handlers:
            handler.close()
        root.handlers = saved_handlers
        root.setLevel(saved_level)
        for name, level in saved_components.items():
            logging.getLogger(name).setLevel(level)

    def test_invalid_level_is_reported(self):
        assert LoggingSettings(level="LOUD").validate()

    def test_file_logging(self, tmp_path, restore_logging):
        log_file = tmp_path / "logs" / "meshroute.log"
        settings = LoggingSettings(console_output=False, file_output=True, log_file=str(log_file))
        setup_logging(settings)
        logging.getLogger("meshroute.test").info("hello")
        for handler in logging.getLogger().handlers:
            handler.flush()
        assert "hello" in log_file.read_text()

    def test_search_loggers_default_to_info(self, restore_logging):
        setup_logging(LoggingSettings(level="DEBUG", console_output=False))

        search_logger = logging.getLogger("meshroute.algorithms.base.region_graph_solver")
        assert search_logger.level == logging.INFO
        assert logging.getLogger().level == logging.DEBUG

    def test_component_levels_override_defaults(self, restore_logging):
        settings = LoggingSettings(console_output=False, component_levels={
            "meshroute.algorithms.base.region_graph_solver": "DEBUG",
            "meshroute.algorithms.portpoint.rip_policy": "WARNING",
        })
        levels = get_component_levels(settings)
        assert levels["meshroute.algorithms.portpoint.candidate_selection"] == "INFO"

        setup_logging(settings)
        assert logging.getLogger("meshroute.algorithms.base.region_graph_solver").level == logging.DEBUG
        assert logging.getLogger("meshroute.algorithms.portpoint.rip_policy").level == logging.WARNING

    def test_context_logger_prefixes_messages(self, caplog):
        context_logger = get_context_logger("meshroute.test", connection="A", iteration=3)
        with caplog.at_level(logging.INFO):
            context_logger.info("ripping")
        assert "[connection=A iteration=3] ripping" in caplog.text

    def test_solver_logger_reads_live_iteration(self, counting_solver_class, caplog):
        solver = counting_solver_class(steps_needed=5)
        solver.step()
        solver.step()
        with caplog.at_level(logging.INFO):
            solver.solver_logger.bind(connection="A").info("ripping")
            solver.step()
            solver.solver_logger.info("stepped")

        assert "[solver=CountingSolver iteration=2 connection=A] ripping" in caplog.text
        assert "[solver=CountingSolver iteration=3] stepped" in caplog.text

    def test_rip_messages_carry_solver_context(self, contention_mesh, caplog):
        nodes, connections = contention_mesh
        solver = PortPointPathingSolver(nodes, connections)
        with caplog.at_level(logging.INFO):
            solver.solve()

        rip_records = [r.getMessage() for r in caplog.records if "[RIP]" in r.getMessage()]
        assert len(rip_records) == 1
        assert rip_records[0].startswith("[solver=PortPointPathingSolver iteration=")
        assert "connection=B] [RIP] Ripping 1 route(s): A" in rip_records[0]
