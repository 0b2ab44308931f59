"""Utility functions for loading CSV files with consistent error handling."""

import pandas as pd
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

STOCK_COLUMNS = [
    'id', 'name', 'short_name', 'class', 'description', 'price_per_share_in_cents',
    'number_of_shares', 'drift', 'volatility', 'shock_probability', 'dividend_probability',
]

DEFAULT_STOCK_DATA_PATH = Path(__file__).resolve().parents[1] / 'scenarios' / 'data' / 'stocks.csv'


def load_csv(
    file_path: Union[str, Path],
    file_description: str = "CSV file",
    silent: bool = False
) -> Optional[pd.DataFrame]:
    """
    Load a CSV file with consistent error handling and validation.

    Args:
        file_path: Path to the CSV file
        file_description: Human-readable description of the file for error messages
        silent: If True, suppress informational messages (errors still printed)

    Returns:
        pd.DataFrame if successful, None if file doesn't exist or is empty
    """
    file_path = Path(file_path)

    if not file_path.exists():
        if not silent:
            print(f"  {file_description.capitalize()} file not found: {file_path}")
        return None

    try:
        df = pd.read_csv(file_path, keep_default_na=False)
    except pd.errors.EmptyDataError:
        print(f"  Error: {file_description} file is empty or malformed: {file_path}")
        return None
    except pd.errors.ParserError as e:
        print(f"  Error parsing {file_description} file: {str(e)}")
        return None

    if df.empty:
        if not silent:
            print(f"  {file_description.capitalize()} file exists but is empty")
        return None

    return df


def validate_stock_frame(df: pd.DataFrame, expected_count: Optional[int] = None) -> pd.DataFrame:
    """Check columns and ids of a stock table; returns it sorted by id.

    Raises:
        ValueError: on missing columns, a wrong stock count or ids that are
            not exactly 0..N-1
    """
    missing = [c for c in STOCK_COLUMNS if c not in df.columns]
    if missing:
        raise ValueError(f"Stock data is missing columns: {missing}")

    if expected_count is not None and len(df) != expected_count:
        raise ValueError(f"Expected {expected_count} stocks, found {len(df)}")

    df = df.sort_values('id').reset_index(drop=True)
    if df['id'].tolist() != list(range(len(df))):
        raise ValueError(f"Stock ids must be 0..{len(df) - 1}, got {df['id'].tolist()}")
    return df


def load_stock_rows(
    file_path: Union[str, Path] = DEFAULT_STOCK_DATA_PATH,
    expected_count: Optional[int] = None
) -> List[Dict[str, Any]]:
    """Load the static stock configuration as a list of row dicts ordered by id."""
    df = load_csv(file_path, "stock data", silent=True)
    if df is None:
        raise ValueError(f"No stock data found at {file_path}")
    df = validate_stock_frame(df, expected_count)
    return df[STOCK_COLUMNS].to_dict(orient='records')
