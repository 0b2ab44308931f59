from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Set

import numpy as np
import pandas as pd


class DataRecorder:
    """Collects per-tick market rows and leaderboard snapshots.

    Rows are kept as plain dicts while the simulation runs. ``flush`` appends
    them to the CSV files in ``data_dir`` and empties the buffers, so a
    long-running loop only ever holds the rows since the last flush. Frames
    combine what was flushed with what is still buffered.
    """

    MARKET_FILE = 'market_data.csv'
    AGENT_FILE = 'agent_data.csv'
    ACTION_FILE = 'action_data.csv'

    def __init__(self, market, agent_repository, data_dir: Path):
        self.market = market
        self.agent_repository = agent_repository
        self.data_dir = Path(data_dir)

        self.market_data: List[Dict[str, Any]] = []
        self.agent_data: List[Dict[str, Any]] = []
        self.action_data: List[Dict[str, Any]] = []
        # Files this recorder has created; later flushes append to them
        self._written: Set[str] = set()

    def record_tick_data(self, tick_number: int):
        """Record prices of every stock after a tick."""
        timestamp = datetime.now().isoformat()
        phase = self.market.phase
        for stock in self.market.stocks:
            self.market_data.append({
                'timestamp': timestamp,
                'tick': tick_number,
                'market_tick': self.market.last_tick,
                'phase': phase.kind.value,
                'cycle': phase.cycle,
                'stock_id': stock.id,
                'stock_name': stock.name,
                'price': stock.price_per_share_in_cents,
                'allocated_shares': stock.allocated_shares,
                'market_cap': stock.market_cap_cents(),
            })

    def record_portfolios(self, tick_number: int):
        timestamp = datetime.now().isoformat()
        for rank, (username, value) in enumerate(self.market.portfolios, start=1):
            agent = self.agent_repository.get_agent(username)
            self.agent_data.append({
                'timestamp': timestamp,
                'tick': tick_number,
                'rank': rank,
                'username': username,
                'agent_kind': agent.agent_kind if agent is not None else None,
                'cash': agent.cash if agent is not None else np.nan,
                'total_value': value,
            })

    def record_action(self, result):
        self.action_data.append(result.to_dict())

    def _frame(self, filename: str, rows: List[Dict[str, Any]]) -> pd.DataFrame:
        frames = []
        if filename in self._written:
            frames.append(pd.read_csv(self.data_dir / filename))
        if rows:
            frames.append(pd.DataFrame(rows))
        if not frames:
            return pd.DataFrame()
        return pd.concat(frames, ignore_index=True)

    def market_frame(self) -> pd.DataFrame:
        return self._frame(self.MARKET_FILE, self.market_data)

    def agent_frame(self) -> pd.DataFrame:
        return self._frame(self.AGENT_FILE, self.agent_data)

    def action_frame(self) -> pd.DataFrame:
        return self._frame(self.ACTION_FILE, self.action_data)

    def price_frame(self) -> pd.DataFrame:
        """Prices pivoted to one column per stock, indexed by tick."""
        df = self.market_frame()
        if df.empty:
            return df
        return df.pivot_table(index='tick', columns='stock_name', values='price', aggfunc='last')

    def leaderboard_frame(self, tick_number: Optional[int] = None) -> pd.DataFrame:
        """Latest (or given) leaderboard snapshot."""
        df = self.agent_frame()
        if df.empty:
            return df
        tick_number = df['tick'].max() if tick_number is None else tick_number
        return df[df['tick'] == tick_number].sort_values('rank').reset_index(drop=True)

    def _append_rows(self, filename: str, rows: List[Dict[str, Any]]):
        if not rows:
            return
        first_write = filename not in self._written
        pd.DataFrame(rows).to_csv(
            self.data_dir / filename,
            mode='w' if first_write else 'a',
            header=first_write,
            index=False,
        )
        self._written.add(filename)
        rows.clear()

    def flush(self):
        """Append buffered rows to the data CSVs and empty the buffers."""
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self._append_rows(self.MARKET_FILE, self.market_data)
        self._append_rows(self.AGENT_FILE, self.agent_data)
        self._append_rows(self.ACTION_FILE, self.action_data)

    def save_simulation_data(self):
        """Save all simulation data to files"""
        self.flush()
