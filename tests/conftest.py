# tests/conftest.py
import pytest
from pathlib import Path
from unittest.mock import MagicMock
import sys
import argparse

# Ensure the app package is findable by pytest by adding the project root to the path
project_root = Path(__file__).parent.parent.resolve()
sys.path.insert(0, str(project_root))

from catalog_app.config_manager import ResolverConfig
from catalog_app.exceptions import CatalogUnavailableError
from catalog_app.models import CatalogSeries, CatalogSeason, CatalogEpisode, CatalogActor


class FakeCatalog:
    """In-memory catalog with the same coroutine surface as CatalogClient."""

    def __init__(self, series=None, seasons=None, episodes=None, actors=None):
        self.series = list(series or [])
        self.seasons = dict(seasons or {})    # series_id -> [CatalogSeason]
        self.episodes = dict(episodes or {})  # season_id -> [CatalogEpisode]
        self.actors = dict(actors or {})      # series_id -> [CatalogActor]
        self.calls = []
        self.unavailable = False
        self.listing_available = True
        self.closed = False

    def _record(self, name, *args):
        self.calls.append((name,) + args)
        if self.unavailable:
            raise CatalogUnavailableError(f"Catalog unavailable for '{name}'", name)

    async def get_series_by_id(self, series_id):
        self._record('get_series_by_id', series_id)
        return next((s for s in self.series if str(s.id) == str(series_id)), None)

    async def get_all_series(self):
        self._record('get_all_series')
        return list(self.series) if self.listing_available else None

    async def get_seasons_for_series(self, series_id):
        self._record('get_seasons_for_series', series_id)
        return list(self.seasons.get(int(series_id), []))

    async def get_episodes_for_season(self, season_id):
        self._record('get_episodes_for_season', season_id)
        return list(self.episodes.get(int(season_id), []))

    async def get_actors_for_series(self, series_id):
        self._record('get_actors_for_series', series_id)
        return list(self.actors.get(int(series_id), []))

    def call_names(self):
        return [c[0] for c in self.calls]

    def close(self):
        self.closed = True


@pytest.fixture
def resolver_config():
    return ResolverConfig(penalty_factor=5, acceptance_cutoff=50, year_match_bonus=20)


@pytest.fixture
def anime_catalog():
    """Three series, one of them with two seasons of episodes."""
    series = [
        CatalogSeries(id=1, title="Naruto", year=2002, status="ended", genres="Action, Adventure"),
        CatalogSeries(id=2, title="Naruto Shippuden", year=2007),
        CatalogSeries(id=7, title="One Piece", title_for_plex="One Piece Kai", year=1999, status="Continuing"),
    ]
    seasons = {
        7: [
            CatalogSeason(id=70, series_id=7, season_number=1, title="East Blue", premiered="1999-10-20"),
            CatalogSeason(id=71, series_id=7, season_number=2, title="Alabasta", year=2001),
        ],
    }
    episodes = {
        70: [
            CatalogEpisode(id=700, season_id=70, episode_number=1, title="Romance Dawn",
                           original_filename="One.Piece.Kai.E01.[1080p].mkv"),
            CatalogEpisode(id=705, season_id=70, episode_number=5, title="Show Ep05",
                           original_filename="Show.Ep05.mkv"),
        ],
        71: [
            CatalogEpisode(id=713, season_id=71, episode_number=3, title="Whiskey Peak"),
            CatalogEpisode(id=714, season_id=71, episode_number=None, display_episode="4", title="Laboon"),
        ],
    }
    actors = {7: [CatalogActor(id=1, name="Mayumi Tanaka", role="Luffy"), CatalogActor(id=2, name="  ")]}
    return FakeCatalog(series=series, seasons=seasons, episodes=episodes, actors=actors)


# --- Mock Config Fixture ---
@pytest.fixture
def mock_cfg_helper(mocker):
    mock_args = argparse.Namespace(profile='default')
    mock_config_manager = MagicMock()
    class MockConfigHelper:
        def __init__(self, manager, args): self.manager = manager; self.args = args; self.profile = getattr(args, 'profile', 'default') or 'default'
        def __call__(self, key, default_value=None, arg_value=None):
             if arg_value is not None: return arg_value
             if key in self.manager._mock_values: return self.manager._mock_values[key]
             return default_value
        def get_api_key(self): return self.manager._mock_api_key
        def get_list(self, key, default_value=None):
            val = self(key, default_value)
            if isinstance(val, str): return [i.strip() for i in val.split(',') if i.strip()]
            if isinstance(val, list): return val
            return default_value if isinstance(default_value, list) else []
    mock_config_manager._mock_values = {}
    mock_config_manager._mock_api_key = None
    return MockConfigHelper(mock_config_manager, mock_args)


# --- Series Folder Fixture ---
@pytest.fixture
def series_folder(tmp_path: Path):
    """A series folder with episodes, a sample, a hidden file and a sidecar."""
    folder = tmp_path / "One Piece"
    folder.mkdir()
    (folder / "One.Piece.Kai.E01.[1080p].mkv").touch()
    (folder / "Show.Ep05.mkv").touch()
    (folder / "One.Piece.Kai.E01.nfo").touch()
    (folder / ".hidden.mkv").touch()
    (folder / "sample-One.Piece.mkv").touch()
    sub_dir = folder / "Season 02"
    sub_dir.mkdir()
    (sub_dir / "One.Piece.S02E03.mkv").touch()
    return folder
