"""Pytest configuration for the spectrum deconvolution test suite."""

from pathlib import Path
import sys

import matplotlib
import pytest

matplotlib.use("Agg")

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from deconvolution_data import DeconvolutionData  # noqa: E402
from deconvolution_models import PerPoint  # noqa: E402
from diff_function import DiffFunction  # noqa: E402
from spectrum import Spectrum  # noqa: E402


TWO_SPIKES = [0.] * 12 + [1.] + [0.] * 6 + [1.] + [0.] * 6


@pytest.fixture
def two_spikes_data():
    """Delta instrument, two unit spikes measured, per point model."""
    instrument = Spectrum([0., 1., 0.], step=1., x_start=-1.)
    measured = Spectrum(TWO_SPIKES, step=1., x_start=0.)
    model = PerPoint(DiffFunction.DySqr, 0.)
    return DeconvolutionData(instrument, measured, model)


@pytest.fixture
def small_per_point_data():
    instrument = Spectrum([1.], step=1., x_start=0.)
    measured = Spectrum([0.2, 0.8, 0.4], step=1., x_start=0.)
    model = PerPoint(DiffFunction.DySqr, 0.5)
    return DeconvolutionData(instrument, measured, model)
