"""LoggingService built on the modular logging components."""
import logging
from pathlib import Path
from typing import Dict, Optional

from logging_utils.logger_factory import LoggerFactory
from logging_utils.csv_header_manager import CSVHeaders, CSVHeaderManager
from logging_utils.csv_logger import CSVLogger


class LoggingService:
    """Centralized logging service with singleton pattern."""

    _instance = None
    _loggers: Dict[str, logging.Logger] = {}
    _run_dir: Optional[Path] = None
    _data_dir: Optional[Path] = None

    # Named loggers, one file each in the run directory
    LOGGER_NAMES = (
        'market',
        'stocks',
        'agents',
        'actions',
        'events',
        'persistence',
        'simulation',
        'verification',
    )

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    @classmethod
    def initialize(cls, run_id: str, base_dir: Path = Path('logs'), console_level: int = logging.WARNING):
        """Initialize all loggers and directories.

        Args:
            run_id: Run identifier, usually "<scenario>/<timestamp>"
            base_dir: Root directory for all runs
            console_level: Minimum level echoed to the console
        """
        cls._run_dir = Path(base_dir) / run_id
        cls._data_dir = cls._run_dir / 'data'

        cls._run_dir.mkdir(parents=True, exist_ok=True)
        cls._data_dir.mkdir(exist_ok=True)

        console_handler = logging.StreamHandler()
        console_handler.setLevel(console_level)
        console_handler.setFormatter(logging.Formatter('%(levelname)s - %(name)s - %(message)s'))

        cls._initialize_csv_headers()
        cls._setup_all_loggers(console_handler)

    @classmethod
    def _initialize_csv_headers(cls):
        """Initialize all CSV files with headers."""
        CSVHeaderManager.initialize_csv_file(
            cls._run_dir / 'rejected_actions.csv', CSVHeaders.REJECTED_ACTIONS
        )
        CSVHeaderManager.initialize_csv_file(
            cls._run_dir / 'resolved_actions.csv', CSVHeaders.RESOLVED_ACTIONS
        )

    @classmethod
    def _setup_all_loggers(cls, console_handler: logging.Handler):
        """Setup all loggers using the factory."""
        cls._loggers['rejected_actions'] = LoggerFactory.create_csv_logger(
            'rejected_actions', cls._run_dir, 'rejected_actions.csv', console_handler
        )
        cls._loggers['resolved_actions'] = LoggerFactory.create_csv_logger(
            'resolved_actions', cls._run_dir, 'resolved_actions.csv', console_handler
        )

        for name in cls.LOGGER_NAMES:
            cls._loggers[name] = LoggerFactory.create_logger(
                name, cls._run_dir, f'{name}.log', console_handler
            )

    @classmethod
    def is_initialized(cls) -> bool:
        return bool(cls._loggers)

    @classmethod
    def log_rejected_action(
        cls,
        tick: int,
        username: str,
        agent_kind: str,
        error: Exception,
        attempted_action: str,
        debug: bool = False
    ):
        """Log a rejected action to the actions log and the rejected-actions CSV."""
        cls.get_logger('actions').warning(
            f"Rejected action for {username} at tick {tick}: "
            f"{type(error).__name__}: {error} [{attempted_action}]"
        )
        CSVLogger.log_rejected_action(
            logger=cls._loggers['rejected_actions'],
            tick=tick,
            username=username,
            agent_kind=agent_kind,
            error_type=type(error).__name__,
            details=str(error),
            attempted_action=attempted_action,
            debug=debug
        )

    @classmethod
    def log_resolved_action(cls, tick: int, username: str, action_kind: str, cash_after: int):
        CSVLogger.log_resolved_action(
            logger=cls._loggers['resolved_actions'],
            tick=tick,
            username=username,
            action_kind=action_kind,
            cash_after=cash_after
        )

    @classmethod
    def log_simulation(cls, message: str):
        """Log simulation message."""
        cls.get_logger('simulation').info(message)

    @classmethod
    def log_agent(cls, message: str):
        """Log agent message."""
        cls.get_logger('agents').info(message)

    @classmethod
    def get_run_dir(cls) -> Path:
        """Get the run directory path."""
        if cls._run_dir is None:
            raise RuntimeError("LoggingService not initialized. Call initialize() first.")
        return cls._run_dir

    @classmethod
    def get_data_dir(cls) -> Path:
        """Get the data directory path."""
        if cls._data_dir is None:
            raise RuntimeError("LoggingService not initialized. Call initialize() first.")
        return cls._data_dir

    @classmethod
    def get_logger(cls, name: str) -> logging.Logger:
        """Get logger by name."""
        if not cls._loggers:
            raise RuntimeError("LoggingService not initialized. Call initialize() first.")
        logger = cls._loggers.get(name)
        if logger is None:
            raise KeyError(f"Unknown logger: {name}")
        return logger
