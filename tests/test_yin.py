import pytest

pytest.importorskip("aubio")

from piano_kids.audio.yin import AubioPitchEstimator  # noqa: E402
from piano_kids.core.config import ConfigManager  # noqa: E402
from piano_kids.core.factory import ComponentFactory  # noqa: E402


def test_yin_estimates_la(sine):
    estimator = AubioPitchEstimator()
    assert estimator.estimate(sine(440.0)) == pytest.approx(440.0, rel=0.02)


def test_yin_silence(sine):
    assert AubioPitchEstimator().estimate(sine(440.0, amplitude=100)) is None


def test_factory_selects_yin():
    manager = ConfigManager(persist=False)
    manager.update_config("pitch_detector", {"method": "yin"})
    estimator = ComponentFactory(manager).create_estimator()
    assert isinstance(estimator, AubioPitchEstimator)
