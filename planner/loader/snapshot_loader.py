import logging
from pathlib import Path
from typing import Dict, List

import pandas as pd

log = logging.getLogger(__name__)

REQUIRED_FILES = ('heroes', 'pools', 'reward_fund')
OPTIONAL_FILES = ('wallet', 'pets', 'positions', 'prices', 'expeditions', 'active_quests', 'reward_claims')

COLUMNS: Dict[str, List[str]] = {
    'wallet': ['address', 'gravity_feeder'],
    'heroes': ['id', 'wisdom', 'vitality', 'gardening', 'level', 'has_gardening_gene', 'has_fast_regen', 'current_quest'],
    'pets': ['id', 'bonus_id', 'egg_type', 'bonus_scalar', 'is_fed', 'equipped_to'],
    'pools': ['id', 'allocation_share', 'total_staked_raw', 'total_value_locked', 'token0', 'token1', 'name'],
    'positions': ['pool_id', 'staked_raw'],
    'reward_fund': ['primary_balance', 'secondary_balance'],
    'prices': ['primary_usd', 'secondary_usd'],
    'expeditions': ['expedition_id', 'quest_id', 'hero_ids', 'level', 'attempts', 'quest_type',
                    'iteration_time', 'remaining_iterations'],
    'active_quests': ['quest_id', 'hero_ids', 'attempts', 'quest_address', 'quest_type', 'start_time',
                      'complete_at_time'],
    'reward_claims': ['hero_id', 'token'],
}

BOOL_COLUMNS = ('gravity_feeder', 'has_gardening_gene', 'has_fast_regen', 'is_fed')
COLUMN_DEFAULTS = {'is_fed': True}
TRUE_VALUES = {'true', '1', 'yes', 'y', 't'}


class SnapshotLoaderException(Exception):
    """
    Exception raised when a snapshot directory misses required data.
    """


class SnapshotLoader:
    """
    Loads the CSV files of one wallet snapshot into DataFrames.

    Attributes:
        data_path: Directory holding the snapshot CSV files

    Methods:
        extract(): Reads every known CSV file of the snapshot directory.
        transform(): Fills missing optional columns and normalizes booleans.
        read(): Runs extract and transform and returns the frames.
    """

    def __init__(self, data_path: str | Path) -> None:
        self.data_path = Path(data_path)
        self._data: Dict[str, pd.DataFrame] = {}
        self.missing: List[str] = []

    def get_data(self, name: str) -> pd.DataFrame | None:
        path = self.data_path / f"{name}.csv"
        if not path.exists():
            return None
        with open(path, "r") as f:
            return pd.read_csv(f, dtype={'current_quest': str, 'hero_ids': str, 'quest_address': str})

    def extract(self):
        if not self.data_path.is_dir():
            raise SnapshotLoaderException(f"Snapshot directory {self.data_path} does not exist")
        self._data = {}
        self.missing = []
        for name in REQUIRED_FILES + OPTIONAL_FILES:
            df = self.get_data(name)
            if df is None:
                if name in REQUIRED_FILES:
                    raise SnapshotLoaderException(f"Missing required snapshot file {name}.csv in {self.data_path}")
                log.warning(f"No {name}.csv in {self.data_path}, treating it as empty")
                self.missing.append(name)
                df = pd.DataFrame(columns=COLUMNS[name])
            self._data[name] = df

    def transform(self):
        for name, df in self._data.items():
            for column in COLUMNS[name]:
                if column not in df.columns:
                    df[column] = COLUMN_DEFAULTS.get(column)
            for column in BOOL_COLUMNS:
                if column in df.columns:
                    df[column] = df[column].map(_to_bool)
            self._data[name] = df
        if self._data['reward_fund'].empty:
            raise SnapshotLoaderException("reward_fund.csv holds no balances")

    def read(self) -> Dict[str, pd.DataFrame]:
        self.extract()
        self.transform()
        log.info(f"Loaded snapshot {self.data_path}: "
                 + ", ".join(f"{len(df)} {name}" for name, df in self._data.items()))
        return self._data


def _to_bool(value) -> bool:
    if value is None or (isinstance(value, float) and pd.isna(value)):
        return False
    if isinstance(value, str):
        return value.strip().lower() in TRUE_VALUES
    return bool(value)
