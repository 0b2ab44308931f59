"""Factory for creating and configuring loggers with consistent patterns."""
import logging
from pathlib import Path
from typing import Optional


class LoggerFactory:
    """Factory for creating loggers with standardized configurations."""

    @staticmethod
    def create_logger(
        name: str,
        run_dir: Path,
        filename: str,
        console_handler: logging.Handler,
        formatter: Optional[logging.Formatter] = None,
        level: int = logging.INFO,
        mode: str = 'a'
    ) -> logging.Logger:
        """
        Create a logger writing to a file in the run directory and to the console.

        Args:
            name: Logger name
            run_dir: Run-specific directory for logs
            filename: Log filename
            console_handler: Shared console handler for warnings/errors
            formatter: Custom formatter (default: timestamped with level)
            level: Minimum level written to the file
            mode: File open mode ('a' to append, 'w' to truncate)

        Returns:
            Configured logger
        """
        logger = logging.getLogger(name)
        logger.setLevel(level)

        # Re-initialization must not stack handlers on a named logger
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
            handler.close()

        if formatter is None:
            formatter = logging.Formatter('%(asctime)s - %(levelname)s - %(message)s')

        file_handler = logging.FileHandler(run_dir / filename, mode=mode)
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

        logger.addHandler(console_handler)
        logger.propagate = False

        return logger

    @staticmethod
    def create_csv_logger(
        name: str,
        run_dir: Path,
        filename: str,
        console_handler: logging.Handler
    ) -> logging.Logger:
        """
        Create a CSV logger with plain formatting (no timestamps).

        Rows are appended so that a header written beforehand is preserved.
        """
        csv_formatter = logging.Formatter('%(message)s')

        return LoggerFactory.create_logger(
            name=name,
            run_dir=run_dir,
            filename=filename,
            console_handler=console_handler,
            formatter=csv_formatter,
        )
