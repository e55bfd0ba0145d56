"""Tests for MatchConfig."""

from pathlib import Path

import pytest

from citizenmatch.config import MatchConfig


def test_defaults():
    config = MatchConfig()

    assert config.database_path is None
    assert config.min_confidence == 70
    assert config.use_blocking is True
    assert config.max_workers == 1
    assert config.page_size == 15
    assert config.address_page_size == 1000


def test_scan_configuration_override():
    config = MatchConfig(min_confidence=80, use_blocking=False)

    scan = config.scan_configuration(min_confidence=95)

    assert scan.min_confidence == 95
    assert scan.use_blocking is False
    assert config.scan_configuration().min_confidence == 80


@pytest.mark.parametrize("kwargs", [
    {'min_confidence': 73},
    {'min_confidence': 100},
    {'page_size': 0},
    {'address_page_size': 0},
    {'max_workers': 0},
])
def test_invalid_values(kwargs):
    with pytest.raises(ValueError):
        MatchConfig(**kwargs)


class TestFromEnv:

    def test_empty_environment(self):
        config = MatchConfig.from_env({})

        assert config == MatchConfig()

    def test_reads_variables(self):
        config = MatchConfig.from_env({
            'CITIZENMATCH_DATABASE': '/data/registry.db',
            'CITIZENMATCH_MIN_CONFIDENCE': '85',
            'CITIZENMATCH_PAGE_SIZE': '25',
            'CITIZENMATCH_ADDRESS_PAGE_SIZE': '500',
            'CITIZENMATCH_MAX_WORKERS': '4',
            'CITIZENMATCH_USE_BLOCKING': 'off',
            'UNRELATED': 'x',
        })

        assert config.database_path == Path('/data/registry.db')
        assert config.min_confidence == 85
        assert config.page_size == 25
        assert config.address_page_size == 500
        assert config.max_workers == 4
        assert config.use_blocking is False

    def test_reads_os_environ(self, monkeypatch):
        monkeypatch.setenv('CITIZENMATCH_MIN_CONFIDENCE', '90')

        assert MatchConfig.from_env().min_confidence == 90

    @pytest.mark.parametrize("name,value", [
        ('CITIZENMATCH_MIN_CONFIDENCE', 'high'),
        ('CITIZENMATCH_MIN_CONFIDENCE', '72'),
        ('CITIZENMATCH_USE_BLOCKING', 'maybe'),
    ])
    def test_invalid_values(self, name, value):
        with pytest.raises(ValueError):
            MatchConfig.from_env({name: value})
