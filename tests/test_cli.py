import numpy as np
import pytest
import soundfile as sf

from piano_kids.cli import main as cli


@pytest.fixture(autouse=True)
def quiet_logging(monkeypatch):
    monkeypatch.setattr(cli, "setup_logging", lambda level=None: None)


def test_no_command_prints_help(capsys):
    assert cli.main([]) == 1
    assert "usage" in capsys.readouterr().out


def test_analyze_prints_confirmed_notes(tmp_path, sine, capsys):
    path = tmp_path / "mi_la.wav"
    samples = np.concatenate([sine(329.63, frames=8192 * 3), sine(440.0, frames=8192 * 3)])
    sf.write(str(path), samples, 22050, subtype="PCM_16")

    code = cli.main(["--config-dir", str(tmp_path / "cfg"), "analyze", str(path)])

    out = capsys.readouterr().out
    assert code == 0
    assert "Mi" in out and "La" in out
    assert "2 notes confirmed" in out


def test_analyze_missing_file(tmp_path, capsys):
    code = cli.main(["--config-dir", str(tmp_path), "analyze", str(tmp_path / "nope.wav")])
    assert code == 1
    assert "Error" in capsys.readouterr().err


def test_play_rejects_unknown_notes(tmp_path, monkeypatch, capsys, fake_input):
    factory_cls = cli.ComponentFactory
    monkeypatch.setattr(
        factory_cls,
        "create_audio_input",
        lambda self, implementation="default", **kwargs: fake_input(hold=True),
    )

    code = cli.main(["--config-dir", str(tmp_path), "play", "--notes", "Do,H"])
    assert code == 1
    assert "Unknown note" in capsys.readouterr().err
