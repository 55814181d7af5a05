import pytest

import roastarena.config


def test_load_profile(tmp_path, monkeypatch):
    (tmp_path / 'arenad.yml').write_text('arenad:\n  port: 4242\n')
    monkeypatch.setenv('CFG_DIR', str(tmp_path))
    cfg = roastarena.config.load('arenad')
    assert cfg == {'arenad': {'port': 4242}}

    # Cached: later changes on disk are not seen
    (tmp_path / 'arenad.yml').write_text('arenad:\n  port: 1\n')
    assert roastarena.config.load('arenad') is cfg


def test_missing_profile(tmp_path, monkeypatch):
    monkeypatch.setenv('CFG_DIR', str(tmp_path))
    with pytest.raises(roastarena.config.ConfigReadError):
        roastarena.config.load('nope')


def test_empty_and_invalid_profiles(tmp_path, monkeypatch):
    monkeypatch.setenv('CFG_DIR', str(tmp_path))
    (tmp_path / 'empty.yml').write_text('')
    assert roastarena.config.load('empty') == {}
    (tmp_path / 'list.yml').write_text('- 1\n- 2\n')
    with pytest.raises(roastarena.config.ConfigReadError):
        roastarena.config.load('list')


def test_section():
    cfg = {'arenad': {'port': 1}, 'damage': None}
    assert roastarena.config.section(cfg, 'arenad') == {'port': 1}
    assert roastarena.config.section(cfg, 'damage') == {}
    assert roastarena.config.section(cfg, 'jokegen') == {}


def test_arenaconf_fixture(arenaconf):
    arenaconf('arenad', arenad={'port': 4242})
    assert roastarena.config.load('arenad') == {'arenad': {'port': 4242}}
    with pytest.raises(KeyError):
        roastarena.config.load('other')
