"""
Tests for settings parsing.

Covers:
- Node URL mapping per shard
- Rejection of malformed or out-of-range entries
- Page size and log level validation
"""

import pytest
from pydantic import ValidationError

from app.config.settings import Settings

DATABASE_URL = "sqlite+aiosqlite:///:memory:"


def make_settings(**overrides) -> Settings:
    values = {"database_url": DATABASE_URL, "environment": "test"}
    values.update(overrides)
    return Settings(_env_file=None, **values)


class TestNodeUrls:
    """NODE_RPC_URLS parsing."""

    def test_parses_shard_mapping(self):
        settings = make_settings(
            node_rpc_urls="1=http://node-1:8027, 2=http://node-2:8028"
        )

        assert settings.get_node_urls() == {
            1: "http://node-1:8027",
            2: "http://node-2:8028",
        }

    def test_empty_value_means_no_shards(self):
        assert make_settings(node_rpc_urls="").get_node_urls() == {}

    def test_entry_without_shard_rejected(self):
        with pytest.raises(ValidationError):
            make_settings(node_rpc_urls="http://node-1:8027")

    def test_shard_out_of_range_rejected(self):
        with pytest.raises(ValidationError):
            make_settings(node_rpc_urls="21=http://node:8027")

    def test_shard_count_bounds_range(self):
        settings = make_settings(shard_count=4, node_rpc_urls="4=http://node:8027")

        assert list(settings.get_node_urls()) == [4]
        assert settings.get_shard_numbers() == [1, 2, 3, 4]

    def test_url_without_scheme_rejected(self):
        with pytest.raises(ValidationError):
            make_settings(node_rpc_urls="1=node-1:8027")


class TestValidation:
    """Other field validation."""

    def test_defaults(self):
        settings = make_settings()

        assert settings.sync_interval == 10
        assert settings.ranking_refresh_interval == 5
        assert settings.max_ranked_accounts == 10_000
        assert settings.sync_legacy_tick_skip is False

    def test_log_level_normalized(self):
        assert make_settings(log_level="debug").log_level == "DEBUG"

    def test_unknown_log_level_rejected(self):
        with pytest.raises(ValidationError):
            make_settings(log_level="verbose")

    def test_default_page_size_above_max_rejected(self):
        with pytest.raises(ValidationError):
            make_settings(default_page_size=200, max_page_size=100)
