"""Settings dataclasses for meshroute."""
import math
from dataclasses import dataclass, field
from typing import Dict, List

from ..exceptions import ValidationError
from ..utils.validation_utils import (
    validate_non_negative_number, validate_positive_number, validate_range
)


@dataclass
class PathingSettings:
    """Weights and budgets for the port point pathing solver."""
    # Search
    greedy_multiplier: float = 0.7
    max_candidates_per_region: int = 2
    use_center_first_selection: bool = False
    max_iterations: int = 200_000

    # Cost terms
    port_usage_penalty: float = 0.15
    region_transition_penalty: float = 0.6
    region_size_penalty_factor: float = 0.01
    center_bias_factor: float = 0.05
    memory_pf_factor: float = 1.0
    memory_decay: float = 0.98
    straight_line_deviation_penalty: float = 0.0

    # Ripping
    ripping_enabled: bool = True
    rip_cost: float = 8.5
    rip_node_pf_threshold_start: float = 0.3
    max_region_rips: int = 100
    max_rips: int = 500
    random_rip_fraction: float = 0.1

    # Guardrail
    min_allowed_board_score: float = -50.0

    def validate(self) -> List[str]:
        """Return a list of human readable problems, empty when valid."""
        errors = []
        checks = [
            (validate_positive_number, 'greedy_multiplier'),
            (validate_positive_number, 'max_candidates_per_region'),
            (validate_positive_number, 'max_iterations'),
            (validate_non_negative_number, 'port_usage_penalty'),
            (validate_non_negative_number, 'region_transition_penalty'),
            (validate_non_negative_number, 'region_size_penalty_factor'),
            (validate_non_negative_number, 'center_bias_factor'),
            (validate_non_negative_number, 'memory_pf_factor'),
            (validate_non_negative_number, 'straight_line_deviation_penalty'),
            (validate_non_negative_number, 'rip_cost'),
            (validate_positive_number, 'max_region_rips'),
            (validate_non_negative_number, 'max_rips'),
        ]
        for check, name in checks:
            try:
                check(getattr(self, name), name)
            except ValidationError as e:
                errors.append(str(e))

        for name, low, high in (
            ('memory_decay', 0.0, 1.0),
            ('rip_node_pf_threshold_start', 0.0, 1.0),
            ('random_rip_fraction', 0.0, 1.0),
        ):
            try:
                validate_range(getattr(self, name), name, low, high)
            except ValidationError as e:
                errors.append(str(e))

        # +/- infinity are meaningful here: always-fail and always-accept
        if isinstance(self.min_allowed_board_score, float) and math.isnan(self.min_allowed_board_score):
            errors.append("min_allowed_board_score must not be NaN")

        return errors


@dataclass
class LoggingSettings:
    """Logging configuration."""
    level: str = "INFO"
    console_output: bool = True
    file_output: bool = False
    log_file: str = "logs/meshroute.log"
    max_file_size_mb: int = 10
    backup_count: int = 3
    format_string: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    date_format: str = "%Y-%m-%d %H:%M:%S"
    component_levels: Dict[str, str] = field(default_factory=dict)

    def validate(self) -> List[str]:
        errors = []
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if self.level.upper() not in valid_levels:
            errors.append(f"Invalid log level: {self.level}")
        for component, level in self.component_levels.items():
            if level.upper() not in valid_levels:
                errors.append(f"Invalid log level for {component}: {level}")
        if self.max_file_size_mb <= 0:
            errors.append("max_file_size_mb must be positive")
        return errors


@dataclass
class ApplicationSettings:
    """Top level settings container persisted by ConfigManager."""
    version: str = "1.0.0"
    config_version: int = 1
    pathing: PathingSettings = field(default_factory=PathingSettings)
    logging: LoggingSettings = field(default_factory=LoggingSettings)

    def validate(self) -> Dict[str, List[str]]:
        """Validate every category."""
        return {
            "pathing": self.pathing.validate(),
            "logging": self.logging.validate(),
        }
