import pytest

from pyhpcg.api.settings import get_settings, PYHPCG_DEFAULTS

#==============================================================================
@pytest.fixture
def clean_environment(monkeypatch):
    monkeypatch.delenv('PYHPCG_COMM', raising=False)
    monkeypatch.delenv('PYHPCG_EXCHANGE', raising=False)
    return monkeypatch

#==============================================================================
def test_default_settings(clean_environment):

    settings = get_settings()

    assert settings == PYHPCG_DEFAULTS
    assert settings is not PYHPCG_DEFAULTS

#==============================================================================
def test_environment_settings(clean_environment):

    clean_environment.setenv('PYHPCG_COMM', 'serial')
    clean_environment.setenv('PYHPCG_EXCHANGE', 'Blocking')

    settings = get_settings()
    assert settings['comm']     == 'serial'
    assert settings['exchange'] == 'blocking'

    # Keyword arguments have the last word, unless they are None
    settings = get_settings(comm='mpi', exchange=None)
    assert settings['comm']     == 'mpi'
    assert settings['exchange'] == 'blocking'

#==============================================================================
def test_override_settings(clean_environment):

    settings = get_settings(max_iter=10, tolerance=1e-6, ncalls=3, output_dir='/tmp')

    assert settings['max_iter']   == 10
    assert settings['tolerance']  == 1e-6
    assert settings['ncalls']     == 3
    assert settings['output_dir'] == '/tmp'

#==============================================================================
@pytest.mark.parametrize('overrides', [{'comm': 'openmp'},
                                       {'exchange': 'async'},
                                       {'max_iter': -1},
                                       {'max_iter': 2.5},
                                       {'ncalls': 0},
                                       {'tolerance': -1e-3},
                                       {'nx': 4}])

def test_invalid_settings(clean_environment, overrides):

    with pytest.raises(ValueError):
        get_settings(**overrides)

#==============================================================================
def test_invalid_environment(clean_environment):

    clean_environment.setenv('PYHPCG_COMM', 'tcp')

    with pytest.raises(ValueError):
        get_settings()
