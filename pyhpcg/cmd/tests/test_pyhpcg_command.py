import pytest
import yaml

from pyhpcg.cmd.main import pyhpcg_command, pyhpcg
from pyhpcg.api.dump import problem_filename

#==============================================================================
@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    monkeypatch.delenv('PYHPCG_COMM', raising=False)
    monkeypatch.delenv('PYHPCG_EXCHANGE', raising=False)

#==============================================================================
@pytest.mark.parametrize('argv', [['--comm', 'serial'],
                                  ['--comm', 'serial', '4', '4'],
                                  ['--comm', 'serial', '4', '4', '4', '4'],
                                  ['--comm', 'serial', '4', '0', '4'],
                                  ['--comm', 'serial', '4', 'x', '4'],
                                  ['--comm', 'serial', '--max-iter', '-2', '4', '4', '4'],
                                  ['--comm', 'tcp', '4', '4', '4']])

def test_usage_error(argv, capsys):

    with pytest.raises(SystemExit) as exc:
        pyhpcg_command(argv)

    assert exc.value.code == 1
    assert 'ERROR' in capsys.readouterr().err

#==============================================================================
def test_help_and_version(capsys):

    with pytest.raises(SystemExit) as exc:
        pyhpcg_command(['--comm', 'serial', '-h'])
    assert exc.value.code == 0
    assert 'nx' in capsys.readouterr().out

    with pytest.raises(SystemExit) as exc:
        pyhpcg_command(['--comm', 'serial', '--version'])
    assert exc.value.code == 0
    assert 'pyhpcg' in capsys.readouterr().out

#==============================================================================
def test_serial_run(tmp_path):

    argv = ['--comm', 'serial', '--max-iter', '3', '--ncalls', '2', '--blocking',
            '--dump', '-o', str(tmp_path), '4', '3', '2']

    assert pyhpcg_command(argv) is None

    reports = list(tmp_path.glob('pyhpcg-*.yaml'))
    assert len(reports) == 1
    assert (tmp_path / problem_filename(0)).exists()

    with open(reports[0]) as f:
        report = yaml.safe_load(f)

    assert report['Solver']['CG calls']      == 2
    assert report['Solver']['iterations']    == 6
    assert report['Solver']['halo exchange'] == 'blocking'
    assert report['Linear system']['rows']   == 24

#==============================================================================
def test_pyhpcg_environment(tmp_path, monkeypatch):

    monkeypatch.setenv('PYHPCG_COMM', 'serial')

    path = pyhpcg(nx=2, ny=2, nz=2, max_iter=2, tolerance=1e-3, output_dir=str(tmp_path))

    with open(path) as f:
        report = yaml.safe_load(f)

    assert report['Solver']['tolerance'] == 1e-3
    assert report['Solver']['halo exchange'] == 'nonblocking'
