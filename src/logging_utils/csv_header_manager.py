"""Manager for CSV file headers and initialization."""
from pathlib import Path
from typing import List


class CSVHeaders:
    """Constants for CSV file headers."""

    REJECTED_ACTIONS = "timestamp,tick,username,agent_kind,error_type,details,attempted_action"

    RESOLVED_ACTIONS = "timestamp,tick,username,action_kind,cash_after"


class CSVHeaderManager:
    """Manages initialization of CSV files with headers."""

    @staticmethod
    def initialize_csv_file(file_path: Path, header: str) -> None:
        """
        Initialize a CSV file with a header if it doesn't exist or is empty.

        Args:
            file_path: Path to the CSV file
            header: Header string to write
        """
        if not file_path.exists() or file_path.stat().st_size == 0:
            with open(file_path, 'w') as f:
                f.write(f"{header}\n")

    @staticmethod
    def initialize_csv_files(file_paths: List[Path], header: str) -> None:
        for path in file_paths:
            CSVHeaderManager.initialize_csv_file(path, header)
